"""Per-minute billing engine exports"""

from .clock import CATCH_UP_POLICIES, elapsed_minutes, expected_deduction, plan_tick
from .distributor import billed_minutes, compute_session_cost, distribute, format_amount, format_duration
from .exceptions import BillingError, InvalidTransitionError
from .gate import can_start, evaluate
from .models import (
    CATCH_UP_FULL,
    CATCH_UP_INCREMENTAL,
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
    TickPlan,
)
from .notifications import BillingNotifier
from .scheduler import BillingClock
from .service import BillingService
from .state_machine import actions_allowed, can_transition

__all__ = [
    "BillingClock",
    "BillingError",
    "BillingEvent",
    "BillingNotifier",
    "BillingService",
    "CATCH_UP_FULL",
    "CATCH_UP_INCREMENTAL",
    "CATCH_UP_POLICIES",
    "Distribution",
    "EVENT_ACTIVATED",
    "EVENT_ENDED",
    "EVENT_SUSPENDED",
    "GateDecision",
    "InvalidTransitionError",
    "Settlement",
    "TICK_CHARGED",
    "TICK_IDLE",
    "TICK_RETRY",
    "TICK_SKIPPED",
    "TICK_SUSPENDED",
    "TickOutcome",
    "TickPlan",
    "actions_allowed",
    "billed_minutes",
    "can_start",
    "can_transition",
    "compute_session_cost",
    "distribute",
    "elapsed_minutes",
    "evaluate",
    "expected_deduction",
    "format_amount",
    "format_duration",
    "plan_tick",
]
