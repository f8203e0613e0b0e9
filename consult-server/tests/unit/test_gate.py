from dataclasses import replace
from datetime import datetime, timedelta, timezone

from app.modules.billing import can_start, evaluate
from app.modules.sessions import ConsultationSession
from app.modules.wallets import WalletSnapshot


def _session(rate: int = 5) -> ConsultationSession:
    return ConsultationSession(
        id="client_provider",
        participant_a="client",
        participant_b="provider",
        payer_id="client",
        provider_id="provider",
        session_type="chat",
        rate_per_minute_cents=rate,
    )


def _wallet(account_id: str, balance: int) -> WalletSnapshot:
    return WalletSnapshot(account_id=account_id, balance_cents=balance, currency="INR", updated_at=None)


def test_payer_with_one_increment_is_allowed():
    decision = evaluate(_session(), _wallet("client", 5))

    assert decision.allowed
    assert decision.is_payer
    assert decision.shortfall_cents == 0


def test_payer_below_one_increment_is_denied_with_shortfall():
    decision = evaluate(_session(), _wallet("client", 2))

    assert not decision.allowed
    assert decision.shortfall_cents == 3
    assert decision.required_cents == 5


def test_receiver_with_empty_wallet_is_always_allowed():
    decision = evaluate(_session(), _wallet("provider", 0))

    assert decision.allowed
    assert not decision.is_payer


def test_preflight_check_uses_minimum_minutes():
    assert can_start(10, 5).allowed
    denied = can_start(10, 5, minimum_minutes=3)
    assert not denied.allowed
    assert denied.shortfall_cents == 5


def test_payer_passes_during_free_trial_with_empty_wallet():
    start = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
    trial_end = start + timedelta(seconds=60)
    session = replace(_session(), status="active", started_at=trial_end, free_trial_ends_at=trial_end)

    during = evaluate(session, _wallet("client", 0), start + timedelta(seconds=30))
    after = evaluate(session, _wallet("client", 0), trial_end + timedelta(seconds=1))

    assert during.allowed and during.in_free_trial
    assert not after.allowed
    assert after.shortfall_cents == 5
