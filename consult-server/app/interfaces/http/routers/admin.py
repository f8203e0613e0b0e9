"""Administrative endpoints for wallets, top-up review and revenue."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import AccountPrincipal, get_current_admin
from app.infrastructure.database.repositories.topup_repository import SqlTopupRepository
from app.interfaces.http.deps import get_billing_service, get_db_session
from app.interfaces.http.errors import DOMAIN_ERRORS, to_http_error
from app.interfaces.http.routers.wallet import topup_to_response
from app.modules.billing import BillingService, format_amount
from app.modules.topups import TopupService
from app.schemas import (
    RevenueReportResponse,
    TopupReviewResponse,
    WalletSnapshotResponse,
    WalletTopupListResponse,
    WalletTopupReviewRequest,
    WalletTransactionListResponse,
    WalletTransactionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/wallets/{account_id}", response_model=WalletSnapshotResponse)
async def admin_wallet_balance(
    account_id: str,
    _: AccountPrincipal = Depends(get_current_admin),
    billing: BillingService = Depends(get_billing_service),
) -> WalletSnapshotResponse:
    balance = await billing.wallets.get_balance(account_id)
    currency = billing.wallets.currency
    return WalletSnapshotResponse(
        account_id=account_id,
        balance_cents=balance,
        currency=currency,
        balance=format_amount(balance, currency),
    )


@router.get("/wallets/{account_id}/transactions", response_model=WalletTransactionListResponse)
async def admin_wallet_transactions(
    account_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: AccountPrincipal = Depends(get_current_admin),
    billing: BillingService = Depends(get_billing_service),
) -> WalletTransactionListResponse:
    rows = await billing.wallets.list_transactions(account_id, limit, offset)
    return WalletTransactionListResponse(
        transactions=[WalletTransactionResponse.model_validate(row) for row in rows]
    )


@router.get("/topups", response_model=WalletTopupListResponse)
async def admin_list_topups(
    status_filter: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _: AccountPrincipal = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
) -> WalletTopupListResponse:
    topup_service = TopupService.with_session(db)
    orders = await topup_service.list_orders_admin(status=status_filter, limit=limit, offset=offset)
    return WalletTopupListResponse(orders=[topup_to_response(order) for order in orders])


@router.post("/topups/{order_id}/review", response_model=TopupReviewResponse)
async def admin_review_topup(
    order_id: str,
    payload: WalletTopupReviewRequest,
    admin: AccountPrincipal = Depends(get_current_admin),
    billing: BillingService = Depends(get_billing_service),
    db: AsyncSession = Depends(get_db_session),
) -> TopupReviewResponse:
    """Approving credits the wallet and re-opens any session it unblocks."""
    topup_service = TopupService(SqlTopupRepository(db), billing.wallets)
    activated: list[str] = []
    try:
        if payload.action == "approve":
            order = await topup_service.mark_success(order_id)
            activated = await billing.on_wallet_credited(order.account_id)
        else:
            order = await topup_service.mark_failed(order_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc

    await db.commit()
    await billing.publish_pending()
    logger.info("Top-up %s reviewed (%s) by %s", order_id, payload.action, admin.account_id)
    response = topup_to_response(order)
    return TopupReviewResponse(**response.model_dump(), activated_sessions=activated)


@router.get("/revenue", response_model=RevenueReportResponse)
async def admin_revenue_report(
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    provider_id: Optional[str] = None,
    _: AccountPrincipal = Depends(get_current_admin),
    billing: BillingService = Depends(get_billing_service),
) -> RevenueReportResponse:
    totals = await billing.revenue_report(since=since, until=until, provider_id=provider_id)
    return RevenueReportResponse(currency=billing.wallets.currency, **totals)
