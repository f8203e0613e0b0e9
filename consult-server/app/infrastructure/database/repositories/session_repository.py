"""SQLAlchemy implementation for consultation sessions"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import desc, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import ConsultationSession

from .inserts import insert_if_absent


class SqlSessionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, session_id: str) -> ConsultationSession | None:
        stmt = (
            select(ConsultationSession)
            .where(ConsultationSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_if_absent(self, values: dict[str, Any]) -> tuple[ConsultationSession, bool]:
        created = await insert_if_absent(
            self.session,
            ConsultationSession,
            values,
            index_elements=["id"],
        )
        model = await self.get(values["id"])
        assert model is not None
        return model, created

    async def compare_and_set(
        self,
        session_id: str,
        *,
        expected_status: str,
        expected_cycle: int,
        expected_deducted_cents: int,
        values: dict[str, Any],
    ) -> bool:
        stmt = (
            update(ConsultationSession)
            .where(
                ConsultationSession.id == session_id,
                ConsultationSession.status == expected_status,
                ConsultationSession.billing_cycle == expected_cycle,
                ConsultationSession.accumulated_deducted_cents == expected_deducted_cents,
            )
            .values(**values)
            .returning(ConsultationSession.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_for_account(self, account_id: str, limit: int, offset: int) -> Sequence[ConsultationSession]:
        stmt = (
            select(ConsultationSession)
            .where(
                or_(
                    ConsultationSession.participant_a == account_id,
                    ConsultationSession.participant_b == account_id,
                )
            )
            .order_by(desc(ConsultationSession.created_at))
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_for_payer(self, payer_id: str, statuses: Sequence[str]) -> Sequence[ConsultationSession]:
        stmt = (
            select(ConsultationSession)
            .where(
                ConsultationSession.payer_id == payer_id,
                ConsultationSession.status.in_(list(statuses)),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
