"""Provider pricing endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import AccountPrincipal, get_current_account, get_current_provider
from app.interfaces.http.deps import get_db_session
from app.interfaces.http.errors import DOMAIN_ERRORS, to_http_error
from app.modules.pricing import PricingConfig, PricingService, validate_pricing
from app.schemas import PricingResponse, PricingUpdateRequest

router = APIRouter()


def _pricing_response(provider_id: str, config: PricingConfig | None) -> PricingResponse:
    if config is None:
        return PricingResponse(provider_id=provider_id, configured=False)
    return PricingResponse(
        provider_id=provider_id,
        configured=validate_pricing(config),
        chat_rate_per_minute_cents=config.chat_rate_per_minute_cents,
        audio_rate_per_minute_cents=config.audio_rate_per_minute_cents,
        video_rate_per_minute_cents=config.video_rate_per_minute_cents,
        updated_at=config.updated_at,
    )


@router.get("/{provider_id}/pricing", response_model=PricingResponse, summary="Provider per-minute rates")
async def get_provider_pricing(
    provider_id: str,
    _: AccountPrincipal = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> PricingResponse:
    service = PricingService.with_session(db)
    return _pricing_response(provider_id, await service.get_pricing(provider_id))


@router.put("/me/pricing", response_model=PricingResponse, summary="Set own per-minute rates")
async def update_own_pricing(
    payload: PricingUpdateRequest,
    provider: AccountPrincipal = Depends(get_current_provider),
    db: AsyncSession = Depends(get_db_session),
) -> PricingResponse:
    service = PricingService.with_session(db)
    try:
        config = await service.update_pricing(
            provider.account_id,
            chat_rate_cents=payload.chat_rate_per_minute_cents,
            audio_rate_cents=payload.audio_rate_per_minute_cents,
            video_rate_cents=payload.video_rate_per_minute_cents,
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    await db.commit()
    return _pricing_response(provider.account_id, config)
