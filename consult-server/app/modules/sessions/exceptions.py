"""Consultation session exceptions."""


class SessionError(Exception):
    """Base class for consultation session errors."""


class SessionNotFoundError(SessionError):
    """Raised when no session exists for the requested id."""


class SessionParticipantError(SessionError):
    """Raised when an account acts on a session it does not belong to."""


class ConcurrentSessionUpdateError(SessionError):
    """Raised when a compare-and-set on the session row loses a race."""
