"""Top-up order exceptions."""


class TopupError(Exception):
    """Base class for top-up order errors."""


class TopupNotFoundError(TopupError):
    """Raised when the requested order does not exist."""


class TopupAlreadyProcessedError(TopupError):
    """Raised when reviewing an order that is no longer pending."""
