"""Domain model for a two-party consultation session."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

STATUS_AWAITING_FUNDS = "awaiting_funds"
STATUS_ACTIVE = "active"
STATUS_SUSPENDED = "suspended"
STATUS_ENDED = "ended"

SESSION_STATUSES = (STATUS_AWAITING_FUNDS, STATUS_ACTIVE, STATUS_SUSPENDED, STATUS_ENDED)


@dataclass(slots=True, frozen=True)
class ConsultationSession:
    """Billing state of one participant pair.

    ``payer_id`` is fixed when the row is first created. ``started_at`` marks the
    start of the billed timeline of the current cycle and
    ``accumulated_deducted_cents`` is what the clock has taken so far in it.
    ``free_trial_ends_at`` is set once per pair, when its first chat gets the
    free window; the billed timeline of that cycle starts when it closes.
    """

    id: str
    participant_a: str
    participant_b: str
    payer_id: str
    provider_id: str
    session_type: str
    rate_per_minute_cents: int
    status: str = STATUS_AWAITING_FUNDS
    billing_cycle: int = 1
    accumulated_deducted_cents: int = 0
    started_at: Optional[datetime] = None
    suspended_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    free_trial_ends_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def participants(self) -> tuple[str, str]:
        return (self.participant_a, self.participant_b)

    @property
    def receiver_id(self) -> str:
        return self.participant_b if self.payer_id == self.participant_a else self.participant_a

    def is_participant(self, account_id: str) -> bool:
        return account_id in self.participants

    def is_payer(self, account_id: str) -> bool:
        return account_id == self.payer_id

    def in_free_trial(self, now: datetime) -> bool:
        if self.free_trial_ends_at is None or self.started_at is None or self.status == STATUS_ENDED:
            return False
        return now < self.free_trial_ends_at

    def billable_seconds(self, now: datetime) -> float:
        """Seconds on the billed timeline, frozen while suspended or ended."""
        if self.started_at is None:
            return 0.0
        stop = self.suspended_at or self.ended_at or now
        return max(0.0, (stop - self.started_at).total_seconds())
