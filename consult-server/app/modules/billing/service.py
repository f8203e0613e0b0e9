"""Billing engine service.

Ties session state, the wallet ledger and pricing together. One instance is
bound to one database session; the caller owns the transaction and calls
:meth:`BillingService.publish_pending` after committing so listeners never see
state that was rolled back.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import BillingSettings
from app.core.timeutils import ensure_utc, utcnow
from app.db.models import SessionSettlement as SettlementModel
from app.infrastructure.database.repositories.settlement_repository import SqlSettlementRepository
from app.modules.pricing import PricingService
from app.modules.sessions import (
    STATUS_ACTIVE,
    STATUS_AWAITING_FUNDS,
    STATUS_ENDED,
    STATUS_SUSPENDED,
    ConcurrentSessionUpdateError,
    ConsultationSession,
    SessionNotFoundError,
    SessionService,
    build_session_id,
)
from app.modules.wallets import InsufficientFundsError, LedgerWriteError, WalletService, WalletSnapshot
from app.modules.wallets.models import TRANSACTION_EARNING

from . import gate, state_machine
from .clock import elapsed_minutes, expected_deduction, plan_tick
from .distributor import distribute, format_amount, format_duration
from .models import (
    EVENT_ACTIVATED,
    EVENT_ENDED,
    EVENT_SUSPENDED,
    TICK_CHARGED,
    TICK_IDLE,
    TICK_RETRY,
    TICK_SKIPPED,
    TICK_SUSPENDED,
    BillingEvent,
    Distribution,
    GateDecision,
    Settlement,
    TickOutcome,
)
from .notifications import BillingNotifier
from .repository import SettlementRepository
from .scheduler import BillingClock

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BillingService:
    sessions: SessionService
    wallets: WalletService
    pricing: PricingService
    settlements: SettlementRepository
    settings: BillingSettings = field(default_factory=BillingSettings)
    clock: BillingClock | None = None
    notifier: BillingNotifier | None = None
    now: Callable[[], datetime] = utcnow
    pending_events: list[BillingEvent] = field(default_factory=list)

    @classmethod
    def with_session(
        cls,
        db: AsyncSession,
        settings: BillingSettings,
        *,
        clock: BillingClock | None = None,
        notifier: BillingNotifier | None = None,
        now: Callable[[], datetime] = utcnow,
    ) -> "BillingService":
        return cls(
            sessions=SessionService.with_session(db),
            wallets=WalletService.with_session(db, settings.currency),
            pricing=PricingService.with_session(db),
            settlements=SqlSettlementRepository(db),
            settings=settings,
            clock=clock,
            notifier=notifier,
            now=now,
        )

    # ------------------------------------------------------------------
    # Session entry and balance gate
    # ------------------------------------------------------------------
    async def open_session(
        self,
        *,
        initiator_id: str,
        counterpart_id: str,
        session_type: str,
    ) -> tuple[ConsultationSession, GateDecision]:
        """First contact creates the session with the initiator as payer.

        Later contacts reuse it unchanged; an ended session is reopened as a
        new billing cycle under the same payer.
        """
        session_id = build_session_id(initiator_id, counterpart_id)
        try:
            session = await self.sessions.get_session(session_id)
        except SessionNotFoundError:
            rate = await self.pricing.rate_for(
                counterpart_id, session_type, self.settings.default_rate_per_minute_cents
            )
            session, _ = await self.sessions.open_session(
                initiator_id=initiator_id,
                counterpart_id=counterpart_id,
                session_type=session_type,
                rate_per_minute_cents=rate,
            )
        else:
            if session.status == STATUS_ENDED:
                rate = await self.pricing.rate_for(
                    session.provider_id, session_type, self.settings.default_rate_per_minute_cents
                )
                reopened = state_machine.reopen(session, session_type=session_type, rate_per_minute_cents=rate)
                session = await self.sessions.save(session, reopened)
                logger.info("Session %s reopened as cycle %s", session.id, session.billing_cycle)

        if self._grants_free_trial(session, initiator_id):
            await self._start_trial(session)
        decision = await self.evaluate_balance(session.id, initiator_id)
        session = await self.sessions.get_session(session.id)
        return session, decision

    async def evaluate_balance(self, session_id: str, account_id: str) -> GateDecision:
        """Gate check for ``account_id``; an allowed payer auto-activates the session."""
        session = await self.sessions.get_for_participant(session_id, account_id)
        decision = gate.evaluate(session, await self._wallet(account_id), self.now())
        if session.status == STATUS_ENDED or not decision.is_payer:
            return decision
        if decision.allowed and session.status in (STATUS_AWAITING_FUNDS, STATUS_SUSPENDED):
            await self._activate(session)
        return decision

    async def check_balance(self, account_id: str, rate_per_minute_cents: int) -> GateDecision:
        """Pre-flight check before any session exists."""
        balance = await self.wallets.get_balance(account_id)
        return gate.can_start(balance, rate_per_minute_cents, self.settings.minimum_minutes)

    async def on_wallet_credited(self, account_id: str) -> list[str]:
        """Re-run the gate for every blocked session this account pays for."""
        blocked = await self.sessions.list_payer_sessions(
            account_id, (STATUS_AWAITING_FUNDS, STATUS_SUSPENDED)
        )
        activated: list[str] = []
        for session in blocked:
            decision = await self.evaluate_balance(session.id, account_id)
            if decision.allowed:
                activated.append(session.id)
        return activated

    # ------------------------------------------------------------------
    # Clock control
    # ------------------------------------------------------------------
    async def start_billing(self, session_id: str, actor_id: str) -> ConsultationSession:
        """Ensure the clock runs for an active session; only the payer can drive it."""
        session = await self.sessions.get_for_participant(session_id, actor_id)
        if not session.is_payer(actor_id):
            logger.debug("Receiver %s cannot start billing for %s", actor_id, session_id)
            return session
        if session.status in (STATUS_AWAITING_FUNDS, STATUS_SUSPENDED):
            await self.evaluate_balance(session_id, actor_id)
            session = await self.sessions.get_session(session_id)
        if session.status == STATUS_ACTIVE and self.clock is not None:
            self.clock.start(session_id)
        return session

    def stop_billing(self, session_id: str) -> bool:
        if self.clock is None:
            return False
        return self.clock.stop(session_id)

    def is_billing(self, session_id: str) -> bool:
        return self.clock is not None and self.clock.is_running(session_id)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    async def tick(self, session_id: str) -> TickOutcome:
        """One reconciliation step.

        A ``retry`` outcome means nothing may be committed: the caller rolls
        the transaction back and the next tick recomputes what is due.
        """
        try:
            session = await self.sessions.get_session(session_id)
        except SessionNotFoundError:
            return TickOutcome(session_id, TICK_SKIPPED)
        if session.status != STATUS_ACTIVE:
            return TickOutcome(
                session_id,
                TICK_SKIPPED,
                accumulated_deducted_cents=session.accumulated_deducted_cents,
            )

        return await self._reconcile(session, self.now())

    async def _reconcile(self, session: ConsultationSession, now: datetime) -> TickOutcome:
        """Charge what is due on an active session, or suspend it for funds."""
        session_id = session.id
        balance = await self.wallets.get_balance(session.payer_id)
        plan = plan_tick(session, now, balance, self.settings.catch_up_policy)

        if plan.suspend:
            return await self._suspend_for_funds(session, now, balance)
        if not plan.charge_cents:
            return TickOutcome(
                session_id,
                TICK_IDLE,
                balance_cents=balance,
                accumulated_deducted_cents=session.accumulated_deducted_cents,
            )

        try:
            result = await self.wallets.debit(
                session.payer_id,
                plan.charge_cents,
                session_id=session.id,
                description=f"{session.session_type.title()} consultation, minute {plan.elapsed_minutes}",
            )
        except InsufficientFundsError as exc:
            return await self._suspend_for_funds(session, now, exc.balance_cents)
        except LedgerWriteError:
            logger.exception("Ledger write failed for session %s; will retry", session_id)
            return TickOutcome(
                session_id,
                TICK_RETRY,
                balance_cents=balance,
                accumulated_deducted_cents=session.accumulated_deducted_cents,
            )

        charged = replace(
            session,
            accumulated_deducted_cents=session.accumulated_deducted_cents + plan.charge_cents,
        )
        try:
            await self.sessions.save(session, charged)
        except ConcurrentSessionUpdateError:
            logger.warning("Session %s changed during tick; debit will be rolled back", session_id)
            return TickOutcome(
                session_id,
                TICK_RETRY,
                balance_cents=balance,
                accumulated_deducted_cents=session.accumulated_deducted_cents,
            )
        return TickOutcome(
            session_id,
            TICK_CHARGED,
            charged_cents=plan.charge_cents,
            balance_cents=result.new_balance_cents,
            accumulated_deducted_cents=charged.accumulated_deducted_cents,
        )

    # ------------------------------------------------------------------
    # Ending and settlement
    # ------------------------------------------------------------------
    async def end_session(self, session_id: str, actor_id: str) -> Settlement:
        """End the session, collect what the balance still covers and split it.

        Ending twice returns the settlement of the cycle that was ended.
        """
        session = await self.sessions.get_for_participant(session_id, actor_id)
        if session.status == STATUS_ENDED:
            self.stop_billing(session_id)
            existing = await self.settlements.get(session.id, session.billing_cycle)
            if existing is not None:
                return self._to_settlement(existing)
            return await self._settle(session, 0)

        now = self.now()
        ended = state_machine.end(session, now)
        cost = expected_deduction(ended, now)
        collected = await self._collect_outstanding(ended, cost - ended.accumulated_deducted_cents)
        ended = replace(ended, accumulated_deducted_cents=ended.accumulated_deducted_cents + collected)
        await self.sessions.save(session, ended)
        # a lost compare-and-set above leaves the session active with its clock
        self.stop_billing(session_id)
        settlement = await self._settle(ended, cost - ended.accumulated_deducted_cents)
        logger.info(
            "Session %s cycle %s ended by %s: %s collected",
            session_id,
            ended.billing_cycle,
            actor_id,
            format_amount(settlement.total_amount_cents, settlement.currency),
        )
        return settlement

    def distribute(self, total_amount_cents: int) -> Distribution:
        return distribute(total_amount_cents, self.settings.provider_share_percent)

    async def list_settlements(self, session_id: str, account_id: str) -> list[Settlement]:
        await self.sessions.get_for_participant(session_id, account_id)
        rows = await self.settlements.list_for_session(session_id)
        return [self._to_settlement(row) for row in rows]

    async def revenue_report(
        self,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        provider_id: str | None = None,
    ) -> dict[str, int]:
        return await self.settlements.revenue_totals(since=since, until=until, provider_id=provider_id)

    async def publish_pending(self) -> None:
        events, self.pending_events = self.pending_events, []
        if self.notifier is None:
            return
        for event in events:
            await self.notifier.publish(event)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _wallet(self, account_id: str) -> WalletSnapshot:
        balance = await self.wallets.get_balance(account_id)
        return WalletSnapshot(
            account_id=account_id,
            balance_cents=balance,
            currency=self.wallets.currency,
            updated_at=None,
        )

    async def _activate(self, session: ConsultationSession) -> ConsultationSession:
        """Start or resume billing and collect the minute that starts now."""
        now = self.now()
        activated = await self.sessions.save(session, state_machine.activate(session, now))
        self._emit(
            EVENT_ACTIVATED,
            activated,
            {
                "status": activated.status,
                "resumed": session.status == STATUS_SUSPENDED,
                "rate_per_minute_cents": activated.rate_per_minute_cents,
            },
        )
        logger.info("Session %s active (payer %s)", activated.id, activated.payer_id)
        outcome = await self._reconcile(activated, now)
        if outcome.result != TICK_SUSPENDED and self.clock is not None:
            self.clock.start(activated.id)
        return await self.sessions.get_session(activated.id)

    def _grants_free_trial(self, session: ConsultationSession, initiator_id: str) -> bool:
        return (
            self.settings.free_trial_seconds > 0
            and session.status == STATUS_AWAITING_FUNDS
            and session.free_trial_ends_at is None
            and session.session_type in self.settings.free_trial_session_types
            and session.is_payer(initiator_id)
        )

    async def _start_trial(self, session: ConsultationSession) -> ConsultationSession:
        trial = state_machine.start_trial(session, self.now(), self.settings.free_trial_seconds)
        trial = await self.sessions.save(session, trial)
        if self.clock is not None:
            self.clock.start(trial.id)
        self._emit(
            EVENT_ACTIVATED,
            trial,
            {
                "status": trial.status,
                "resumed": False,
                "free_trial": True,
                "free_trial_ends_at": trial.free_trial_ends_at.isoformat(),
                "rate_per_minute_cents": trial.rate_per_minute_cents,
            },
        )
        logger.info("Session %s free trial open until %s", trial.id, trial.free_trial_ends_at)
        return trial

    async def _suspend_for_funds(self, session: ConsultationSession, now: datetime, balance: int) -> TickOutcome:
        suspended = state_machine.suspend(session, now)
        try:
            await self.sessions.save(session, suspended)
        except ConcurrentSessionUpdateError:
            return TickOutcome(
                session.id,
                TICK_RETRY,
                balance_cents=balance,
                accumulated_deducted_cents=session.accumulated_deducted_cents,
            )
        shortfall = max(0, session.rate_per_minute_cents - balance)
        self._emit(
            EVENT_SUSPENDED,
            suspended,
            {
                "status": suspended.status,
                "balance_cents": balance,
                "shortfall_cents": shortfall,
                "shortfall": format_amount(shortfall, self.wallets.currency),
            },
        )
        logger.info("Session %s suspended: payer %s short by %s", session.id, session.payer_id, shortfall)
        return TickOutcome(
            session.id,
            TICK_SUSPENDED,
            balance_cents=balance,
            accumulated_deducted_cents=session.accumulated_deducted_cents,
            shortfall_cents=shortfall,
        )

    async def _collect_outstanding(self, session: ConsultationSession, outstanding: int) -> int:
        """Final debit of the whole increments still owed that the balance covers."""
        rate = session.rate_per_minute_cents
        if outstanding < rate:
            return 0
        balance = await self.wallets.get_balance(session.payer_id)
        amount = min(outstanding // rate, balance // rate) * rate
        if amount <= 0:
            return 0
        try:
            await self.wallets.debit(
                session.payer_id,
                amount,
                session_id=session.id,
                description=f"{session.session_type.title()} consultation, final charge",
            )
        except InsufficientFundsError:
            logger.warning("Final charge for %s lost a race with another debit", session.id)
            return 0
        return amount

    async def _settle(self, session: ConsultationSession, uncollected_cents: int) -> Settlement:
        duration = int(session.billable_seconds(session.ended_at or self.now()))
        split = self.distribute(session.accumulated_deducted_cents)
        model, created = await self.settlements.create_if_absent(
            {
                "id": str(uuid.uuid4()),
                "session_id": session.id,
                "billing_cycle": session.billing_cycle,
                "payer_id": session.payer_id,
                "provider_id": session.provider_id,
                "session_type": session.session_type,
                "rate_per_minute_cents": session.rate_per_minute_cents,
                "duration_seconds": duration,
                "billed_minutes": elapsed_minutes(session, session.ended_at or self.now()),
                "total_amount_cents": split.total_amount_cents,
                "provider_earnings_cents": split.provider_earnings_cents,
                "platform_revenue_cents": split.platform_revenue_cents,
                "uncollected_cents": max(0, uncollected_cents),
                "currency": self.wallets.currency,
            }
        )
        settlement = self._to_settlement(model)
        if not created:
            return settlement
        if settlement.provider_earnings_cents > 0:
            await self.wallets.credit(
                settlement.provider_id,
                settlement.provider_earnings_cents,
                type=TRANSACTION_EARNING,
                session_id=session.id,
                description=f"Earnings from {session.session_type} consultation",
            )
        self._emit(
            EVENT_ENDED,
            session,
            {
                "status": STATUS_ENDED,
                "billing_cycle": settlement.billing_cycle,
                "duration_seconds": settlement.duration_seconds,
                "duration": format_duration(settlement.duration_seconds),
                "billed_minutes": settlement.billed_minutes,
                "total_amount_cents": settlement.total_amount_cents,
                "provider_earnings_cents": settlement.provider_earnings_cents,
                "platform_revenue_cents": settlement.platform_revenue_cents,
                "uncollected_cents": settlement.uncollected_cents,
                "total": format_amount(settlement.total_amount_cents, settlement.currency),
            },
        )
        return settlement

    def _emit(self, kind: str, session: ConsultationSession, payload: dict) -> None:
        self.pending_events.append(
            BillingEvent(
                kind=kind,
                session_id=session.id,
                account_ids=session.participants,
                payload={"payer_id": session.payer_id, **payload},
            )
        )

    @staticmethod
    def _to_settlement(model: SettlementModel) -> Settlement:
        return Settlement(
            id=model.id,
            session_id=model.session_id,
            billing_cycle=model.billing_cycle,
            payer_id=model.payer_id,
            provider_id=model.provider_id,
            session_type=model.session_type,
            rate_per_minute_cents=model.rate_per_minute_cents,
            duration_seconds=model.duration_seconds,
            billed_minutes=model.billed_minutes,
            total_amount_cents=model.total_amount_cents,
            provider_earnings_cents=model.provider_earnings_cents,
            platform_revenue_cents=model.platform_revenue_cents,
            uncollected_cents=model.uncollected_cents,
            currency=model.currency,
            created_at=ensure_utc(model.created_at),
        )


__all__ = ["BillingService"]
