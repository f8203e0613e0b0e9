"""In-process fan-out of billing events."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, List

from .models import BillingEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[BillingEvent], Awaitable[None]]


class BillingNotifier:
    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    async def publish(self, event: BillingEvent) -> None:
        """Deliver to every subscriber; one failing subscriber does not stop the rest."""
        logger.debug("Billing event %s for session %s", event.kind, event.session_id)
        for subscriber in list(self._subscribers):
            try:
                await subscriber(event)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Billing event subscriber failed for %s", event.kind)


__all__ = ["BillingNotifier", "Subscriber"]
