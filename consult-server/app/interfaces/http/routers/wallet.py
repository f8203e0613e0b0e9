"""Wallet endpoints for the authenticated account."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import AccountPrincipal, get_current_account
from app.interfaces.http.deps import get_billing_service, get_db_session
from app.interfaces.http.errors import DOMAIN_ERRORS, to_http_error
from app.modules.billing import BillingService, format_amount
from app.modules.pricing import SESSION_TYPES
from app.modules.topups import TopupOrder, TopupService
from app.schemas import (
    BalanceCheckResponse,
    WalletEarningsResponse,
    WalletSnapshotResponse,
    WalletTopupListResponse,
    WalletTopupRequest,
    WalletTopupResponse,
    WalletTransactionListResponse,
    WalletTransactionResponse,
)

router = APIRouter()


def topup_to_response(order: TopupOrder) -> WalletTopupResponse:
    return WalletTopupResponse.model_validate(order)


@router.get("", response_model=WalletSnapshotResponse, summary="Current wallet balance")
async def get_wallet_snapshot(
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
) -> WalletSnapshotResponse:
    balance = await billing.wallets.get_balance(account.account_id)
    currency = billing.wallets.currency
    return WalletSnapshotResponse(
        account_id=account.account_id,
        balance_cents=balance,
        currency=currency,
        balance=format_amount(balance, currency),
    )


@router.get("/transactions", response_model=WalletTransactionListResponse, summary="Wallet history")
async def list_wallet_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
) -> WalletTransactionListResponse:
    records = await billing.wallets.list_transactions(account.account_id, limit, offset)
    return WalletTransactionListResponse(
        transactions=[WalletTransactionResponse.model_validate(record) for record in records]
    )


@router.get("/check", response_model=BalanceCheckResponse, summary="Can the wallet start a session")
async def check_balance(
    provider_id: Optional[str] = None,
    session_type: str = "chat",
    rate_per_minute_cents: Optional[int] = Query(None, gt=0),
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
) -> BalanceCheckResponse:
    """Pre-flight check against an explicit rate or a provider's configured price."""
    if session_type not in SESSION_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown session type: {session_type}")
    rate = rate_per_minute_cents
    if rate is None:
        if provider_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Either provider_id or rate_per_minute_cents is required",
            )
        rate = await billing.pricing.rate_for(
            provider_id, session_type, billing.settings.default_rate_per_minute_cents
        )
    decision = await billing.check_balance(account.account_id, rate)
    return BalanceCheckResponse(
        allowed=decision.allowed,
        balance_cents=decision.balance_cents,
        required_cents=decision.required_cents,
        shortfall_cents=decision.shortfall_cents,
    )


@router.get("/earnings", response_model=WalletEarningsResponse, summary="Lifetime consultation earnings")
async def get_earnings(
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
) -> WalletEarningsResponse:
    total = await billing.wallets.total_earnings(account.account_id)
    currency = billing.wallets.currency
    return WalletEarningsResponse(
        account_id=account.account_id,
        total_earnings_cents=total,
        currency=currency,
        total_earnings=format_amount(total, currency),
    )


@router.post(
    "/topups",
    response_model=WalletTopupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a top-up order",
)
async def create_wallet_topup(
    payload: WalletTopupRequest,
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
    db: AsyncSession = Depends(get_db_session),
) -> WalletTopupResponse:
    topup_service = TopupService.with_session(db, billing.wallets.currency)
    try:
        order = await topup_service.create_order(
            account_id=account.account_id,
            amount_cents=payload.amount_cents,
            payment_channel=payload.payment_channel,
            reference_no=payload.reference_no,
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    await db.commit()
    return topup_to_response(order)


@router.get("/topups", response_model=WalletTopupListResponse, summary="Top-up orders")
async def list_wallet_topups(
    status_filter: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    account: AccountPrincipal = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> WalletTopupListResponse:
    topup_service = TopupService.with_session(db)
    orders = await topup_service.list_orders(account.account_id, limit, offset, status_filter)
    return WalletTopupListResponse(orders=[topup_to_response(order) for order in orders])
