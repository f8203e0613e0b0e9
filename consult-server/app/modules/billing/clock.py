"""Per-tick reconciliation of expected versus deducted charges.

Each tick compares what should have been charged by now
(``ceil(elapsed / 60s) * rate``) with what has been charged, so a late or
missed tick is caught up instead of drifting. The charge never lets the
deducted total exceed the expected total.

A started minute is owed from its first second: once the billed timeline has
begun the expectation is at least one increment, which the service collects
on activation. Ticks landing just past a minute boundary then find exactly one
increment due. Nothing is owed inside a free trial window.
"""

from __future__ import annotations

from datetime import datetime

from app.modules.sessions import ConsultationSession

from .distributor import billed_minutes
from .models import CATCH_UP_FULL, CATCH_UP_INCREMENTAL, TickPlan

CATCH_UP_POLICIES = (CATCH_UP_INCREMENTAL, CATCH_UP_FULL)


def elapsed_minutes(session: ConsultationSession, now: datetime) -> int:
    if session.started_at is None:
        return 0
    # inside the free window, or ended before it closed
    stop = session.suspended_at or session.ended_at or now
    if stop < session.started_at:
        return 0
    return max(1, billed_minutes(session.billable_seconds(now)))


def expected_deduction(session: ConsultationSession, now: datetime) -> int:
    return elapsed_minutes(session, now) * session.rate_per_minute_cents


def plan_tick(
    session: ConsultationSession,
    now: datetime,
    balance_cents: int,
    policy: str = CATCH_UP_INCREMENTAL,
) -> TickPlan:
    if policy not in CATCH_UP_POLICIES:
        raise ValueError(f"Unknown catch-up policy: {policy}")
    if session.in_free_trial(now):
        return TickPlan(elapsed_minutes=0, expected_deduction_cents=0, due_cents=0, charge_cents=0, suspend=False)
    rate = session.rate_per_minute_cents
    minutes = elapsed_minutes(session, now)
    expected = minutes * rate
    due = max(0, expected - session.accumulated_deducted_cents)

    charge = 0
    suspend = False
    if due >= rate and balance_cents >= rate:
        if policy == CATCH_UP_FULL:
            owed_increments = due // rate
            affordable_increments = balance_cents // rate
            charge = min(owed_increments, affordable_increments) * rate
        else:
            charge = rate
    elif balance_cents < rate:
        suspend = True

    return TickPlan(
        elapsed_minutes=minutes,
        expected_deduction_cents=expected,
        due_cents=due,
        charge_cents=charge,
        suspend=suspend,
    )


__all__ = ["CATCH_UP_POLICIES", "elapsed_minutes", "expected_deduction", "plan_tick"]
