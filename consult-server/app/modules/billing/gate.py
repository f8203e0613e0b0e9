"""Balance gate: can this participant keep acting in the session?"""

from __future__ import annotations

from datetime import datetime

from app.modules.sessions import ConsultationSession
from app.modules.wallets import WalletSnapshot

from .models import GateDecision


def evaluate(
    session: ConsultationSession,
    wallet: WalletSnapshot,
    now: datetime | None = None,
) -> GateDecision:
    """Payer needs one increment of balance; the receiver is always let through.

    While the pair's free trial window is open the payer passes with any
    balance.
    """
    if not session.is_payer(wallet.account_id):
        return GateDecision.allow(balance_cents=wallet.balance_cents)
    required = session.rate_per_minute_cents
    if now is not None and session.in_free_trial(now):
        return GateDecision.allow(
            balance_cents=wallet.balance_cents,
            required_cents=required,
            is_payer=True,
            in_free_trial=True,
        )
    if wallet.balance_cents >= required:
        return GateDecision.allow(
            balance_cents=wallet.balance_cents,
            required_cents=required,
            is_payer=True,
        )
    return GateDecision.deny(balance_cents=wallet.balance_cents, required_cents=required)


def can_start(balance_cents: int, rate_per_minute_cents: int, minimum_minutes: int = 1) -> GateDecision:
    """Pre-flight check before a session exists."""
    required = rate_per_minute_cents * minimum_minutes
    if balance_cents >= required:
        return GateDecision.allow(balance_cents=balance_cents, required_cents=required, is_payer=True)
    return GateDecision.deny(balance_cents=balance_cents, required_cents=required)


__all__ = ["evaluate", "can_start"]
