"""Session pairing and payer resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timeutils import ensure_utc
from app.db.models import ConsultationSession as SessionModel
from app.infrastructure.database.repositories.session_repository import SqlSessionRepository
from app.modules.pricing import SESSION_TYPES

from .exceptions import ConcurrentSessionUpdateError, SessionNotFoundError, SessionParticipantError
from .models import STATUS_AWAITING_FUNDS, ConsultationSession
from .repository import SessionRepository

logger = logging.getLogger(__name__)

_STATE_FIELDS = (
    "status",
    "billing_cycle",
    "accumulated_deducted_cents",
    "started_at",
    "suspended_at",
    "ended_at",
    "free_trial_ends_at",
    "session_type",
    "rate_per_minute_cents",
)


def build_session_id(first: str, second: str) -> str:
    """Deterministic id for a participant pair, independent of who asks."""
    if not first or not second:
        raise SessionParticipantError("Both participant ids are required")
    if first == second:
        raise SessionParticipantError("A session needs two distinct participants")
    return "_".join(sorted((first, second)))


def resolve_payer(
    session_id: str,
    initiator_id: str,
    existing: ConsultationSession | None = None,
) -> str:
    """The stored payer wins; only a brand new session takes the initiator."""
    if existing is not None:
        if existing.id != session_id:
            raise ValueError(f"Session {existing.id} does not match {session_id}")
        return existing.payer_id
    return initiator_id


@dataclass(slots=True)
class SessionService:
    repository: SessionRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "SessionService":
        return cls(SqlSessionRepository(session))

    async def open_session(
        self,
        *,
        initiator_id: str,
        counterpart_id: str,
        session_type: str,
        rate_per_minute_cents: int,
    ) -> tuple[ConsultationSession, bool]:
        """Create the pair's session if absent; returns (session, created)."""
        if session_type not in SESSION_TYPES:
            raise ValueError(f"Unknown session type: {session_type}")
        session_id = build_session_id(initiator_id, counterpart_id)
        participant_a, participant_b = sorted((initiator_id, counterpart_id))
        model, created = await self.repository.create_if_absent(
            {
                "id": session_id,
                "participant_a": participant_a,
                "participant_b": participant_b,
                "payer_id": resolve_payer(session_id, initiator_id),
                "provider_id": counterpart_id,
                "session_type": session_type,
                "rate_per_minute_cents": rate_per_minute_cents,
                "status": STATUS_AWAITING_FUNDS,
                "billing_cycle": 1,
                "accumulated_deducted_cents": 0,
            }
        )
        session = self._to_domain(model)
        if created:
            logger.info("Session %s created, payer %s", session.id, session.payer_id)
        elif session.payer_id != initiator_id:
            logger.debug("Session %s reused; %s joins as receiver", session.id, initiator_id)
        return session, created

    async def get_session(self, session_id: str) -> ConsultationSession:
        model = await self.repository.get(session_id)
        if model is None:
            raise SessionNotFoundError(session_id)
        return self._to_domain(model)

    async def get_for_participant(self, session_id: str, account_id: str) -> ConsultationSession:
        session = await self.get_session(session_id)
        if not session.is_participant(account_id):
            raise SessionParticipantError(f"{account_id} is not part of session {session_id}")
        return session

    async def list_sessions(self, account_id: str, limit: int = 50, offset: int = 0) -> list[ConsultationSession]:
        rows = await self.repository.list_for_account(account_id, limit, offset)
        return [self._to_domain(row) for row in rows]

    async def list_payer_sessions(self, payer_id: str, statuses: Sequence[str]) -> list[ConsultationSession]:
        rows = await self.repository.list_for_payer(payer_id, statuses)
        return [self._to_domain(row) for row in rows]

    async def save(self, previous: ConsultationSession, updated: ConsultationSession) -> ConsultationSession:
        """Persist ``updated`` only if the row still matches ``previous``."""
        values = {name: getattr(updated, name) for name in _STATE_FIELDS}
        applied = await self.repository.compare_and_set(
            previous.id,
            expected_status=previous.status,
            expected_cycle=previous.billing_cycle,
            expected_deducted_cents=previous.accumulated_deducted_cents,
            values=values,
        )
        if not applied:
            raise ConcurrentSessionUpdateError(f"Session {previous.id} changed concurrently")
        return updated

    @staticmethod
    def _to_domain(model: SessionModel) -> ConsultationSession:
        data = {f.name: getattr(model, f.name) for f in fields(ConsultationSession)}
        for key in ("started_at", "suspended_at", "ended_at", "free_trial_ends_at", "created_at", "updated_at"):
            data[key] = ensure_utc(data[key])
        return ConsultationSession(**data)
