"""Repository protocol for session settlements."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, Sequence

from app.db.models import SessionSettlement as SettlementModel


class SettlementRepository(Protocol):
    async def get(self, session_id: str, billing_cycle: int) -> SettlementModel | None:
        ...

    async def create_if_absent(self, values: dict[str, Any]) -> tuple[SettlementModel, bool]:
        ...

    async def list_for_session(self, session_id: str) -> Sequence[SettlementModel]:
        ...

    async def revenue_totals(
        self,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        provider_id: str | None = None,
    ) -> dict[str, int]:
        ...
