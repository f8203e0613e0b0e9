"""Recurring billing tasks, one per active session."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict

from .models import TickOutcome

logger = logging.getLogger(__name__)

TickCallback = Callable[[str], Awaitable[TickOutcome]]


class BillingClock:
    """Runs ``tick(session_id)`` every ``interval`` seconds until cancelled.

    Beats are scheduled at ``start + k * interval`` so a slow tick does not push
    later ones back; a beat missed entirely is skipped, the next tick
    reconciles what it would have charged.

    Ticks of one session never overlap: the loop awaits each tick, and
    out-of-band ticks go through :meth:`run_once`, which takes the same lock.
    """

    def __init__(self, tick: TickCallback | None = None, interval: float = 60.0) -> None:
        self._tick = tick
        self.interval = interval
        self.tasks: Dict[str, asyncio.Task] = {}
        self.locks: Dict[str, asyncio.Lock] = {}

    def bind(self, tick: TickCallback) -> None:
        self._tick = tick

    def is_running(self, session_id: str) -> bool:
        task = self.tasks.get(session_id)
        return task is not None and not task.done()

    def running_sessions(self) -> list[str]:
        return [session_id for session_id in self.tasks if self.is_running(session_id)]

    def start(self, session_id: str) -> bool:
        """Start the clock; a clock already running for the session is kept."""
        if self._tick is None:
            raise RuntimeError("BillingClock has no tick callback bound")
        if self.is_running(session_id):
            return False
        self.tasks[session_id] = asyncio.create_task(self._run(session_id))
        logger.info("Billing clock started for session %s", session_id)
        return True

    def stop(self, session_id: str) -> bool:
        task = self.tasks.pop(session_id, None)
        if task is None:
            return False
        if not task.done() and task is not asyncio.current_task():
            task.cancel()
        logger.info("Billing clock stopped for session %s", session_id)
        return True

    async def stop_all(self) -> None:
        tasks = list(self.tasks.values())
        self.tasks.clear()
        for task in tasks:
            if task is not asyncio.current_task():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self.locks.clear()

    async def run_once(self, session_id: str) -> TickOutcome:
        if self._tick is None:
            raise RuntimeError("BillingClock has no tick callback bound")
        lock = self.locks.setdefault(session_id, asyncio.Lock())
        async with lock:
            return await self._tick(session_id)

    async def _run(self, session_id: str) -> None:
        loop = asyncio.get_running_loop()
        anchor = loop.time()
        beat = 0
        try:
            while True:
                beat = max(beat + 1, int((loop.time() - anchor) // self.interval))
                await asyncio.sleep(max(0.0, anchor + beat * self.interval - loop.time()))
                try:
                    outcome = await self.run_once(session_id)
                except asyncio.CancelledError:
                    raise
                except Exception:  # pylint: disable=broad-except
                    logger.exception("Billing tick failed for session %s; retrying next tick", session_id)
                    continue
                if not outcome.keeps_running:
                    logger.info("Billing clock for %s finished (%s)", session_id, outcome.result)
                    break
        except asyncio.CancelledError:
            logger.debug("Billing clock task for %s cancelled", session_id)
            raise
        finally:
            if self.tasks.get(session_id) is asyncio.current_task():
                self.tasks.pop(session_id, None)


__all__ = ["BillingClock", "TickCallback"]
