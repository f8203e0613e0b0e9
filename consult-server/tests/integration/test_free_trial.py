from datetime import timedelta

import pytest

from app.modules.billing import EVENT_ACTIVATED, TICK_IDLE, TICK_SUSPENDED
from app.modules.sessions import STATUS_ACTIVE, STATUS_AWAITING_FUNDS, STATUS_SUSPENDED

PAYER = "client_1"


@pytest.fixture
def trial_billing(make_billing):
    return make_billing(free_trial_seconds=60)


async def _open(billing, provider_id, session_type="chat"):
    return await billing.open_session(initiator_id=PAYER, counterpart_id=provider_id, session_type=session_type)


async def test_first_chat_is_free_for_a_minute(trial_billing, wallet_service, priced_provider, clock):
    started = clock()

    session, decision = await _open(trial_billing, priced_provider)

    assert session.status == STATUS_ACTIVE
    assert decision.allowed and decision.in_free_trial
    assert session.in_free_trial(clock())
    assert session.accumulated_deducted_cents == 0
    assert session.free_trial_ends_at == started + timedelta(seconds=60)
    event = trial_billing.pending_events[-1]
    assert event.kind == EVENT_ACTIVATED
    assert event.payload["free_trial"] is True
    assert await wallet_service.list_transactions(PAYER) == []


async def test_chat_is_blocked_when_trial_runs_out(trial_billing, priced_provider, clock):
    session, _ = await _open(trial_billing, priced_provider)

    clock.advance(30)
    during = await trial_billing.tick(session.id)
    clock.advance(31)
    after = await trial_billing.tick(session.id)

    assert during.result == TICK_IDLE
    assert after.result == TICK_SUSPENDED
    assert after.shortfall_cents == 5
    stored = await trial_billing.sessions.get_session(session.id)
    assert stored.status == STATUS_SUSPENDED
    gate = await trial_billing.evaluate_balance(session.id, PAYER)
    assert not gate.allowed and not gate.in_free_trial


async def test_top_up_after_trial_resumes_with_paid_minutes(trial_billing, wallet_service, priced_provider, clock):
    session, _ = await _open(trial_billing, priced_provider)
    clock.advance(61)
    await trial_billing.tick(session.id)

    clock.advance(300)
    await wallet_service.credit(PAYER, 20)
    activated = await trial_billing.on_wallet_credited(PAYER)

    resumed = await trial_billing.sessions.get_session(session.id)
    assert activated == [session.id]
    assert resumed.status == STATUS_ACTIVE
    assert not resumed.in_free_trial(clock())
    assert resumed.accumulated_deducted_cents == 5
    assert await wallet_service.get_balance(PAYER) == 15


async def test_trial_is_granted_once_per_pair(trial_billing, wallet_service, priced_provider, clock):
    session, _ = await _open(trial_billing, priced_provider)
    clock.advance(90)
    await wallet_service.credit(PAYER, 20)
    await trial_billing.end_session(session.id, PAYER)

    clock.advance(3600)
    reopened, decision = await _open(trial_billing, priced_provider)

    assert reopened.billing_cycle == 2
    assert not decision.in_free_trial
    assert reopened.status == STATUS_ACTIVE
    assert reopened.accumulated_deducted_cents == 5


async def test_paid_session_types_get_no_trial(trial_billing, priced_provider):
    session, decision = await _open(trial_billing, priced_provider, session_type="audio")

    assert session.status == STATUS_AWAITING_FUNDS
    assert session.free_trial_ends_at is None
    assert not decision.allowed


async def test_ending_inside_trial_costs_nothing(trial_billing, wallet_service, priced_provider, clock):
    session, _ = await _open(trial_billing, priced_provider)
    clock.advance(20)

    settlement = await trial_billing.end_session(session.id, PAYER)

    assert settlement.total_amount_cents == 0
    assert settlement.billed_minutes == 0
    assert settlement.duration_seconds == 0
    assert await wallet_service.get_balance(priced_provider) == 0
