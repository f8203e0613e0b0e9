"""Value objects produced by the billing engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

CATCH_UP_INCREMENTAL = "incremental"
CATCH_UP_FULL = "full"

TICK_CHARGED = "charged"
TICK_IDLE = "idle"
TICK_SUSPENDED = "suspended"
TICK_SKIPPED = "skipped"
TICK_RETRY = "retry"

EVENT_ACTIVATED = "activated"
EVENT_SUSPENDED = "suspended"
EVENT_ENDED = "ended"


@dataclass(slots=True, frozen=True)
class GateDecision:
    allowed: bool
    shortfall_cents: int = 0
    balance_cents: int = 0
    required_cents: int = 0
    is_payer: bool = False
    in_free_trial: bool = False

    @classmethod
    def allow(
        cls,
        *,
        balance_cents: int = 0,
        required_cents: int = 0,
        is_payer: bool = False,
        in_free_trial: bool = False,
    ) -> "GateDecision":
        return cls(True, 0, balance_cents, required_cents, is_payer, in_free_trial)

    @classmethod
    def deny(cls, *, balance_cents: int, required_cents: int) -> "GateDecision":
        return cls(False, required_cents - balance_cents, balance_cents, required_cents, True)


@dataclass(slots=True, frozen=True)
class TickPlan:
    elapsed_minutes: int
    expected_deduction_cents: int
    due_cents: int
    charge_cents: int
    suspend: bool


@dataclass(slots=True, frozen=True)
class TickOutcome:
    session_id: str
    result: str
    charged_cents: int = 0
    balance_cents: int = 0
    accumulated_deducted_cents: int = 0
    shortfall_cents: int = 0

    @property
    def keeps_running(self) -> bool:
        return self.result in (TICK_CHARGED, TICK_IDLE, TICK_RETRY)


@dataclass(slots=True, frozen=True)
class Distribution:
    total_amount_cents: int
    provider_earnings_cents: int
    platform_revenue_cents: int


@dataclass(slots=True, frozen=True)
class Settlement:
    id: str
    session_id: str
    billing_cycle: int
    payer_id: str
    provider_id: str
    session_type: str
    rate_per_minute_cents: int
    duration_seconds: int
    billed_minutes: int
    total_amount_cents: int
    provider_earnings_cents: int
    platform_revenue_cents: int
    uncollected_cents: int
    currency: str
    created_at: Optional[datetime]


@dataclass(slots=True, frozen=True)
class BillingEvent:
    kind: str
    session_id: str
    account_ids: tuple[str, ...]
    payload: dict[str, Any] = field(default_factory=dict)
