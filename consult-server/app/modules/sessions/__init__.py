"""Consultation session exports"""

from .exceptions import (
    ConcurrentSessionUpdateError,
    SessionError,
    SessionNotFoundError,
    SessionParticipantError,
)
from .models import (
    SESSION_STATUSES,
    STATUS_ACTIVE,
    STATUS_AWAITING_FUNDS,
    STATUS_ENDED,
    STATUS_SUSPENDED,
    ConsultationSession,
)
from .service import SessionService, build_session_id, resolve_payer

__all__ = [
    "ConcurrentSessionUpdateError",
    "ConsultationSession",
    "SESSION_STATUSES",
    "STATUS_ACTIVE",
    "STATUS_AWAITING_FUNDS",
    "STATUS_ENDED",
    "STATUS_SUSPENDED",
    "SessionError",
    "SessionNotFoundError",
    "SessionParticipantError",
    "SessionService",
    "build_session_id",
    "resolve_payer",
]
