"""Billing engine exceptions."""

from __future__ import annotations


class BillingError(Exception):
    """Base class for billing engine errors."""


class InvalidTransitionError(BillingError):
    """Raised when a session is asked to move to a state it cannot reach."""

    def __init__(self, current: str, target: str, reason: str | None = None) -> None:
        message = f"Cannot move session from {current} to {target}"
        super().__init__(f"{message}: {reason}" if reason else message)
        self.current = current
        self.target = target
