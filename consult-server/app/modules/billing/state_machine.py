"""Billing lifecycle of a consultation session.

    awaiting_funds -> active -> suspended -> ended
                        \\----------------> ended

Transitions are pure: each function takes a session value and returns the
next one. Persisting it is the caller's job.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

from app.modules.sessions import (
    STATUS_ACTIVE,
    STATUS_AWAITING_FUNDS,
    STATUS_ENDED,
    STATUS_SUSPENDED,
    ConsultationSession,
)

from .exceptions import InvalidTransitionError

TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_AWAITING_FUNDS: frozenset({STATUS_ACTIVE, STATUS_ENDED}),
    STATUS_ACTIVE: frozenset({STATUS_SUSPENDED, STATUS_ENDED}),
    STATUS_SUSPENDED: frozenset({STATUS_ACTIVE, STATUS_ENDED}),
    STATUS_ENDED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def _check(session: ConsultationSession, target: str) -> None:
    if not can_transition(session.status, target):
        raise InvalidTransitionError(session.status, target)


def activate(session: ConsultationSession, now: datetime) -> ConsultationSession:
    _check(session, STATUS_ACTIVE)
    if session.status == STATUS_AWAITING_FUNDS:
        return replace(
            session,
            status=STATUS_ACTIVE,
            started_at=now,
            suspended_at=None,
            accumulated_deducted_cents=0,
        )
    # Resume: shift the start by the suspended gap so the billed timeline
    # continues where it froze and unpaid minutes stay owed.
    if session.started_at is None or session.suspended_at is None:
        raise InvalidTransitionError(session.status, STATUS_ACTIVE, "suspended session has no billed timeline")
    gap = max(now - session.suspended_at, timedelta(0))
    return replace(
        session,
        status=STATUS_ACTIVE,
        started_at=session.started_at + gap,
        suspended_at=None,
    )


def start_trial(session: ConsultationSession, now: datetime, seconds: int) -> ConsultationSession:
    """Open the free window; the billed timeline begins when it closes."""
    _check(session, STATUS_ACTIVE)
    if session.status != STATUS_AWAITING_FUNDS or session.free_trial_ends_at is not None:
        raise InvalidTransitionError(session.status, STATUS_ACTIVE, "free trial already used")
    trial_ends_at = now + timedelta(seconds=seconds)
    return replace(
        session,
        status=STATUS_ACTIVE,
        started_at=trial_ends_at,
        suspended_at=None,
        accumulated_deducted_cents=0,
        free_trial_ends_at=trial_ends_at,
    )


def suspend(session: ConsultationSession, now: datetime) -> ConsultationSession:
    _check(session, STATUS_SUSPENDED)
    return replace(session, status=STATUS_SUSPENDED, suspended_at=now)


def end(session: ConsultationSession, now: datetime) -> ConsultationSession:
    _check(session, STATUS_ENDED)
    return replace(session, status=STATUS_ENDED, ended_at=now)


def reopen(
    session: ConsultationSession,
    *,
    session_type: str | None = None,
    rate_per_minute_cents: int | None = None,
) -> ConsultationSession:
    """New contact on an ended session starts a fresh billing cycle; the payer stays."""
    if session.status != STATUS_ENDED:
        raise InvalidTransitionError(session.status, STATUS_AWAITING_FUNDS)
    return replace(
        session,
        status=STATUS_AWAITING_FUNDS,
        billing_cycle=session.billing_cycle + 1,
        accumulated_deducted_cents=0,
        started_at=None,
        suspended_at=None,
        ended_at=None,
        session_type=session_type or session.session_type,
        rate_per_minute_cents=rate_per_minute_cents or session.rate_per_minute_cents,
    )


def actions_allowed(session: ConsultationSession, account_id: str) -> bool:
    """Whether send/call actions are open to this participant."""
    if session.status == STATUS_ENDED or not session.is_participant(account_id):
        return False
    if not session.is_payer(account_id):
        return True
    return session.status == STATUS_ACTIVE


__all__ = [
    "TRANSITIONS",
    "actions_allowed",
    "activate",
    "can_transition",
    "end",
    "reopen",
    "start_trial",
    "suspend",
]
