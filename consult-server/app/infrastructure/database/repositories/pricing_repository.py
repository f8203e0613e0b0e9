"""SQLAlchemy implementation for provider pricing"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import ProviderPricing

from .inserts import insert_if_absent


class SqlPricingRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, provider_id: str) -> ProviderPricing | None:
        stmt = (
            select(ProviderPricing)
            .where(ProviderPricing.provider_id == provider_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def upsert(
        self,
        provider_id: str,
        *,
        chat_rate_cents: int,
        audio_rate_cents: int,
        video_rate_cents: int,
    ) -> ProviderPricing:
        values = {
            "chat_rate_cents": chat_rate_cents,
            "audio_rate_cents": audio_rate_cents,
            "video_rate_cents": video_rate_cents,
        }
        inserted = await insert_if_absent(
            self.session,
            ProviderPricing,
            {"provider_id": provider_id, **values},
            index_elements=["provider_id"],
        )
        if not inserted:
            stmt = (
                update(ProviderPricing)
                .where(ProviderPricing.provider_id == provider_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            await self.session.execute(stmt)
        pricing = await self.get(provider_id)
        assert pricing is not None
        return pricing
