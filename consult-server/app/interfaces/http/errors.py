"""Translate domain exceptions into HTTP errors."""

from fastapi import HTTPException, status

from app.modules.billing import InvalidTransitionError
from app.modules.pricing import PricingConfigurationError
from app.modules.sessions import ConcurrentSessionUpdateError, SessionNotFoundError, SessionParticipantError
from app.modules.topups import TopupAlreadyProcessedError, TopupNotFoundError
from app.modules.wallets import InsufficientFundsError, LedgerWriteError

_STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND),
    (TopupNotFoundError, status.HTTP_404_NOT_FOUND),
    (SessionParticipantError, status.HTTP_403_FORBIDDEN),
    (ConcurrentSessionUpdateError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (TopupAlreadyProcessedError, status.HTTP_409_CONFLICT),
    (InsufficientFundsError, status.HTTP_402_PAYMENT_REQUIRED),
    (PricingConfigurationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (LedgerWriteError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ValueError, status.HTTP_400_BAD_REQUEST),
)


def to_http_error(exc: Exception) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


DOMAIN_ERRORS = tuple(error_type for error_type, _ in _STATUS_BY_ERROR)

__all__ = ["DOMAIN_ERRORS", "to_http_error"]
