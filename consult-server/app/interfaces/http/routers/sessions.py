"""Consultation session endpoints: entry, gate, clock control and ending."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import AccountPrincipal, get_current_account
from app.interfaces.http.deps import get_billing_service, get_db_session
from app.interfaces.http.errors import DOMAIN_ERRORS, to_http_error
from app.modules.billing import BillingService, GateDecision, Settlement, actions_allowed
from app.modules.sessions import ConsultationSession
from app.schemas import (
    GateDecisionResponse,
    SessionListResponse,
    SessionOpenRequest,
    SessionResponse,
    SessionStateResponse,
    SettlementListResponse,
    SettlementResponse,
    SuccessResponse,
)

router = APIRouter()


def session_to_response(session: ConsultationSession, viewer_id: str, billing: BillingService) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        participant_a=session.participant_a,
        participant_b=session.participant_b,
        payer_id=session.payer_id,
        provider_id=session.provider_id,
        session_type=session.session_type,
        rate_per_minute_cents=session.rate_per_minute_cents,
        status=session.status,
        billing_cycle=session.billing_cycle,
        accumulated_deducted_cents=session.accumulated_deducted_cents,
        started_at=session.started_at,
        suspended_at=session.suspended_at,
        ended_at=session.ended_at,
        free_trial_ends_at=session.free_trial_ends_at,
        in_free_trial=session.in_free_trial(billing.now()),
        is_payer=session.is_payer(viewer_id),
        actions_allowed=actions_allowed(session, viewer_id),
        billing_running=billing.is_billing(session.id),
    )


def gate_to_response(decision: GateDecision) -> GateDecisionResponse:
    return GateDecisionResponse(
        allowed=decision.allowed,
        is_payer=decision.is_payer,
        balance_cents=decision.balance_cents,
        required_cents=decision.required_cents,
        shortfall_cents=decision.shortfall_cents,
        in_free_trial=decision.in_free_trial,
    )


def settlement_to_response(settlement: Settlement) -> SettlementResponse:
    return SettlementResponse.model_validate(settlement)


@router.post("", response_model=SessionStateResponse, summary="Open or rejoin a session with a counterpart")
async def open_session(
    payload: SessionOpenRequest,
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
    db: AsyncSession = Depends(get_db_session),
) -> SessionStateResponse:
    try:
        session, decision = await billing.open_session(
            initiator_id=account.account_id,
            counterpart_id=payload.counterpart_id,
            session_type=payload.session_type,
        )
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    await db.commit()
    await billing.publish_pending()
    return SessionStateResponse(
        session=session_to_response(session, account.account_id, billing),
        gate=gate_to_response(decision),
    )


@router.get("", response_model=SessionListResponse, summary="Sessions the account takes part in")
async def list_sessions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
) -> SessionListResponse:
    sessions = await billing.sessions.list_sessions(account.account_id, limit, offset)
    return SessionListResponse(
        sessions=[session_to_response(session, account.account_id, billing) for session in sessions]
    )


@router.get("/{session_id}", response_model=SessionResponse, summary="Session billing state")
async def get_session(
    session_id: str,
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
) -> SessionResponse:
    try:
        session = await billing.sessions.get_for_participant(session_id, account.account_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    return session_to_response(session, account.account_id, billing)


@router.post("/{session_id}/gate", response_model=SessionStateResponse, summary="Re-evaluate the balance gate")
async def evaluate_gate(
    session_id: str,
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
    db: AsyncSession = Depends(get_db_session),
) -> SessionStateResponse:
    try:
        decision = await billing.evaluate_balance(session_id, account.account_id)
        session = await billing.sessions.get_session(session_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    await db.commit()
    await billing.publish_pending()
    return SessionStateResponse(
        session=session_to_response(session, account.account_id, billing),
        gate=gate_to_response(decision),
    )


@router.post("/{session_id}/billing/start", response_model=SessionResponse, summary="Start the billing clock")
async def start_billing(
    session_id: str,
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    try:
        session = await billing.start_billing(session_id, account.account_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    await db.commit()
    await billing.publish_pending()
    return session_to_response(session, account.account_id, billing)


@router.post("/{session_id}/billing/stop", response_model=SuccessResponse, summary="Stop the billing clock")
async def stop_billing(
    session_id: str,
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
) -> SuccessResponse:
    try:
        session = await billing.sessions.get_for_participant(session_id, account.account_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    stopped = billing.stop_billing(session.id) if session.is_payer(account.account_id) else False
    return SuccessResponse(message="Billing clock stopped" if stopped else "Billing clock was not running")


@router.post(
    "/{session_id}/end",
    response_model=SettlementResponse,
    status_code=status.HTTP_200_OK,
    summary="End the session and settle it",
)
async def end_session(
    session_id: str,
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
    db: AsyncSession = Depends(get_db_session),
) -> SettlementResponse:
    try:
        settlement = await billing.end_session(session_id, account.account_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    await db.commit()
    await billing.publish_pending()
    return settlement_to_response(settlement)


@router.get("/{session_id}/settlements", response_model=SettlementListResponse, summary="Settlements per billing cycle")
async def list_settlements(
    session_id: str,
    account: AccountPrincipal = Depends(get_current_account),
    billing: BillingService = Depends(get_billing_service),
) -> SettlementListResponse:
    try:
        settlements = await billing.list_settlements(session_id, account.account_id)
    except DOMAIN_ERRORS as exc:
        raise to_http_error(exc) from exc
    return SettlementListResponse(settlements=[settlement_to_response(item) for item in settlements])
