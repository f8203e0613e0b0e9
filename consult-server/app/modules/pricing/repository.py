"""Repository protocol for provider pricing."""

from __future__ import annotations

from typing import Protocol

from app.db.models import ProviderPricing as ProviderPricingModel


class PricingRepository(Protocol):
    async def get(self, provider_id: str) -> ProviderPricingModel | None:
        ...

    async def upsert(
        self,
        provider_id: str,
        *,
        chat_rate_cents: int,
        audio_rate_cents: int,
        video_rate_cents: int,
    ) -> ProviderPricingModel:
        ...
