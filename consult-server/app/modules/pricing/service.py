"""Provider pricing rules and service."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timeutils import ensure_utc
from app.db.models import ProviderPricing as ProviderPricingModel
from app.infrastructure.database.repositories.pricing_repository import SqlPricingRepository

from .exceptions import PricingConfigurationError
from .models import RATE_LABELS, SESSION_TYPES, PricingConfig
from .repository import PricingRepository

logger = logging.getLogger(__name__)


def validate_pricing(config: PricingConfig | None) -> bool:
    """True iff all three rates are present and strictly positive."""
    if config is None:
        return False
    rates = (
        config.chat_rate_per_minute_cents,
        config.audio_rate_per_minute_cents,
        config.video_rate_per_minute_cents,
    )
    return all(rate is not None and rate > 0 for rate in rates)


def resolve_rate(
    config: PricingConfig | None,
    session_type: str,
    fallback_rate_cents: int | None = None,
) -> int:
    if session_type not in SESSION_TYPES:
        raise ValueError(f"Unknown session type: {session_type}")
    if validate_pricing(config):
        assert config is not None
        rate = config.rate_for(session_type)
        assert rate is not None
        return rate
    if fallback_rate_cents is None or fallback_rate_cents <= 0:
        provider = config.provider_id if config else "unknown"
        raise PricingConfigurationError(f"Provider {provider} has no complete pricing and no fallback rate")
    return fallback_rate_cents


def describe_rate(session_type: str) -> str:
    return RATE_LABELS.get(session_type, session_type.title())


@dataclass(slots=True)
class PricingService:
    repository: PricingRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "PricingService":
        return cls(SqlPricingRepository(session))

    async def get_pricing(self, provider_id: str) -> PricingConfig | None:
        model = await self.repository.get(provider_id)
        return self._to_domain(model) if model else None

    async def update_pricing(
        self,
        provider_id: str,
        *,
        chat_rate_cents: int | None,
        audio_rate_cents: int | None,
        video_rate_cents: int | None,
    ) -> PricingConfig:
        candidate = PricingConfig(
            provider_id=provider_id,
            chat_rate_per_minute_cents=chat_rate_cents,
            audio_rate_per_minute_cents=audio_rate_cents,
            video_rate_per_minute_cents=video_rate_cents,
        )
        if not validate_pricing(candidate):
            raise PricingConfigurationError("Chat, audio and video rates must all be set and positive")
        model = await self.repository.upsert(
            provider_id,
            chat_rate_cents=chat_rate_cents,
            audio_rate_cents=audio_rate_cents,
            video_rate_cents=video_rate_cents,
        )
        logger.info("Pricing updated for provider %s", provider_id)
        return self._to_domain(model)

    async def rate_for(self, provider_id: str, session_type: str, fallback_rate_cents: int) -> int:
        config = await self.get_pricing(provider_id)
        if not validate_pricing(config):
            logger.info("Provider %s has no complete pricing, using fallback %s", provider_id, fallback_rate_cents)
        return resolve_rate(config, session_type, fallback_rate_cents)

    @staticmethod
    def _to_domain(model: ProviderPricingModel) -> PricingConfig:
        return PricingConfig(
            provider_id=model.provider_id,
            chat_rate_per_minute_cents=model.chat_rate_cents,
            audio_rate_per_minute_cents=model.audio_rate_cents,
            video_rate_per_minute_cents=model.video_rate_cents,
            updated_at=ensure_utc(model.updated_at or model.created_at),
        )
