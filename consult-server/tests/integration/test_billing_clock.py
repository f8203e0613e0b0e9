import asyncio
from dataclasses import replace

import pytest

from app.modules.billing import (
    TICK_CHARGED,
    TICK_IDLE,
    TICK_SKIPPED,
    BillingClock,
    BillingService,
    TickOutcome,
    expected_deduction,
)
from app.modules.sessions import STATUS_ACTIVE, STATUS_ENDED, ConcurrentSessionUpdateError, SessionService

PAYER = "client_1"


async def _wait_until_stopped(clock: BillingClock, session_id: str, timeout: float = 5.0) -> None:
    async def _poll():
        while clock.is_running(session_id):
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


async def test_scheduled_ticks_arriving_late_keep_charges_on_schedule(
    db_session, billing_settings, wallet_service, priced_provider, clock
):
    billing_clock = BillingClock(interval=0.05)
    billing = BillingService.with_session(db_session, billing_settings, clock=billing_clock, now=clock)
    seen = []

    async def tick(session_id: str) -> TickOutcome:
        # every beat lands a little after its minute boundary
        clock.advance(60.01)
        await billing.tick(session_id)
        stored = await billing.sessions.get_session(session_id)
        seen.append((stored.accumulated_deducted_cents, expected_deduction(stored, clock())))
        return TickOutcome(session_id, TICK_SKIPPED if len(seen) == 5 else TICK_CHARGED)

    billing_clock.bind(tick)
    await wallet_service.credit(PAYER, 1000)
    session, _ = await billing.open_session(
        initiator_id=PAYER, counterpart_id=priced_provider, session_type="chat"
    )
    try:
        await _wait_until_stopped(billing_clock, session.id)
    finally:
        await billing_clock.stop_all()

    assert [accumulated for accumulated, _ in seen] == [10, 15, 20, 25, 30]
    assert all(accumulated == expected for accumulated, expected in seen)
    assert await wallet_service.get_balance(PAYER) == 970


async def test_end_that_loses_a_race_with_a_tick_keeps_the_clock(
    db_session, billing_settings, wallet_service, priced_provider, clock, monkeypatch
):
    async def idle(session_id: str) -> TickOutcome:
        return TickOutcome(session_id, TICK_IDLE)

    billing_clock = BillingClock(idle, interval=3600)
    billing = BillingService.with_session(db_session, billing_settings, clock=billing_clock, now=clock)
    await wallet_service.credit(PAYER, 100)
    session, _ = await billing.open_session(
        initiator_id=PAYER, counterpart_id=priced_provider, session_type="chat"
    )
    original_save = SessionService.save

    async def save_after_a_tick(self, previous, updated):
        if updated.status == STATUS_ENDED:
            current = await self.get_session(previous.id)
            await original_save(
                self, current, replace(current, accumulated_deducted_cents=current.accumulated_deducted_cents + 5)
            )
        return await original_save(self, previous, updated)

    monkeypatch.setattr(SessionService, "save", save_after_a_tick)
    clock.advance(30)
    try:
        with pytest.raises(ConcurrentSessionUpdateError):
            await billing.end_session(session.id, PAYER)

        stored = await billing.sessions.get_session(session.id)
        assert stored.status == STATUS_ACTIVE
        assert billing_clock.is_running(session.id)
    finally:
        await billing_clock.stop_all()
