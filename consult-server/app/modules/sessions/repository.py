"""Repository protocol for consultation sessions."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from app.db.models import ConsultationSession as SessionModel


class SessionRepository(Protocol):
    async def get(self, session_id: str) -> SessionModel | None:
        ...

    async def create_if_absent(self, values: dict[str, Any]) -> tuple[SessionModel, bool]:
        ...

    async def compare_and_set(
        self,
        session_id: str,
        *,
        expected_status: str,
        expected_cycle: int,
        expected_deducted_cents: int,
        values: dict[str, Any],
    ) -> bool:
        ...

    async def list_for_account(self, account_id: str, limit: int, offset: int) -> Sequence[SessionModel]:
        ...

    async def list_for_payer(self, payer_id: str, statuses: Sequence[str]) -> Sequence[SessionModel]:
        ...
