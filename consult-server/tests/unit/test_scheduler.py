import asyncio

import pytest

from app.modules.billing import TICK_CHARGED, TICK_SUSPENDED, BillingClock, BillingEvent, BillingNotifier, TickOutcome


async def _wait_until_stopped(clock: BillingClock, session_id: str, timeout: float = 2.0) -> None:
    async def _poll():
        while clock.is_running(session_id):
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


async def test_clock_runs_until_tick_says_stop():
    calls = []

    async def tick(session_id: str) -> TickOutcome:
        calls.append(session_id)
        result = TICK_SUSPENDED if len(calls) == 3 else TICK_CHARGED
        return TickOutcome(session_id, result)

    clock = BillingClock(tick, interval=0.01)
    assert clock.start("s1") is True
    await _wait_until_stopped(clock, "s1")

    assert calls == ["s1", "s1", "s1"]
    assert clock.running_sessions() == []


async def test_start_is_idempotent_and_stop_cancels():
    async def tick(session_id: str) -> TickOutcome:
        return TickOutcome(session_id, TICK_CHARGED)

    clock = BillingClock(tick, interval=60)
    assert clock.start("s1") is True
    assert clock.start("s1") is False
    task = clock.tasks["s1"]

    assert clock.stop("s1") is True
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
    assert not clock.is_running("s1")
    assert clock.stop("s1") is False


async def test_failing_tick_keeps_the_clock_alive():
    calls = []

    async def tick(session_id: str) -> TickOutcome:
        calls.append(session_id)
        if len(calls) == 1:
            raise RuntimeError("store unavailable")
        return TickOutcome(session_id, TICK_SUSPENDED)

    clock = BillingClock(tick, interval=0.01)
    clock.start("s1")
    await _wait_until_stopped(clock, "s1")

    assert len(calls) == 2


async def test_ticks_of_one_session_never_overlap():
    active = 0
    peak = 0

    async def tick(session_id: str) -> TickOutcome:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return TickOutcome(session_id, TICK_CHARGED)

    clock = BillingClock(tick, interval=60)
    await asyncio.gather(*(clock.run_once("s1") for _ in range(5)))

    assert peak == 1


async def test_stop_all_cancels_every_session():
    async def tick(session_id: str) -> TickOutcome:
        return TickOutcome(session_id, TICK_CHARGED)

    clock = BillingClock(tick, interval=60)
    clock.start("s1")
    clock.start("s2")
    await clock.stop_all()

    assert clock.running_sessions() == []


async def test_start_without_callback_fails():
    with pytest.raises(RuntimeError):
        BillingClock().start("s1")


async def test_notifier_isolates_failing_subscribers():
    received = []

    async def broken(event: BillingEvent) -> None:
        raise RuntimeError("socket gone")

    async def collector(event: BillingEvent) -> None:
        received.append(event.kind)

    notifier = BillingNotifier()
    notifier.subscribe(broken)
    notifier.subscribe(collector)
    await notifier.publish(BillingEvent(kind="suspended", session_id="s1", account_ids=("a", "b")))

    assert received == ["suspended"]


async def test_beats_are_anchored_to_the_start_time():
    loop = asyncio.get_running_loop()
    beats = []

    async def tick(session_id: str) -> TickOutcome:
        beats.append(loop.time())
        await asyncio.sleep(0.06)
        return TickOutcome(session_id, TICK_SUSPENDED if len(beats) == 3 else TICK_CHARGED)

    clock = BillingClock(tick, interval=0.1)
    started = loop.time()
    clock.start("s1")
    await _wait_until_stopped(clock, "s1")

    # a tick's own duration does not push the next beat back
    assert len(beats) == 3
    assert beats[2] - started < 0.38
