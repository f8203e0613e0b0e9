"""SQLAlchemy implementation for session settlements"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import SessionSettlement

from .inserts import insert_if_absent


class SqlSettlementRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, session_id: str, billing_cycle: int) -> SessionSettlement | None:
        stmt = (
            select(SessionSettlement)
            .where(
                SessionSettlement.session_id == session_id,
                SessionSettlement.billing_cycle == billing_cycle,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_if_absent(self, values: dict[str, Any]) -> tuple[SessionSettlement, bool]:
        created = await insert_if_absent(
            self.session,
            SessionSettlement,
            values,
            index_elements=["session_id", "billing_cycle"],
        )
        model = await self.get(values["session_id"], values["billing_cycle"])
        assert model is not None
        return model, created

    async def list_for_session(self, session_id: str) -> Sequence[SessionSettlement]:
        stmt = (
            select(SessionSettlement)
            .where(SessionSettlement.session_id == session_id)
            .order_by(desc(SessionSettlement.billing_cycle))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def revenue_totals(
        self,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        provider_id: str | None = None,
    ) -> dict[str, int]:
        stmt = select(
            func.count(SessionSettlement.id),
            func.coalesce(func.sum(SessionSettlement.total_amount_cents), 0),
            func.coalesce(func.sum(SessionSettlement.provider_earnings_cents), 0),
            func.coalesce(func.sum(SessionSettlement.platform_revenue_cents), 0),
            func.coalesce(func.sum(SessionSettlement.uncollected_cents), 0),
        )
        if since is not None:
            stmt = stmt.where(SessionSettlement.created_at >= since)
        if until is not None:
            stmt = stmt.where(SessionSettlement.created_at < until)
        if provider_id is not None:
            stmt = stmt.where(SessionSettlement.provider_id == provider_id)
        result = await self.session.execute(stmt)
        count, total, provider, platform, uncollected = result.one()
        return {
            "settlements": int(count),
            "total_amount_cents": int(total),
            "provider_earnings_cents": int(provider),
            "platform_revenue_cents": int(platform),
            "uncollected_cents": int(uncollected),
        }
