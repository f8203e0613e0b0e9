"""Pricing configuration exceptions."""


class PricingConfigurationError(Exception):
    """Raised when a provider's rates are missing, partial or not positive."""
