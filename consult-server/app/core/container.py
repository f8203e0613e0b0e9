"""Simple dependency container for wiring core services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.core.timeutils import utcnow
from app.infrastructure.database.session import get_session_factory
from app.modules.billing import TICK_RETRY, BillingClock, BillingNotifier, BillingService, TickOutcome

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession] | None = None
    clock: BillingClock = field(init=False)
    notifier: BillingNotifier = field(default_factory=BillingNotifier)
    now: Callable[[], datetime] = utcnow

    def __post_init__(self) -> None:
        self.clock = BillingClock(interval=self.settings.billing.tick_interval_seconds)
        self.clock.bind(self.run_tick)

    def init_infrastructure(self) -> None:
        """Ensure infrastructure singletons (database engine, etc.) are initialised."""
        if self.session_factory is None:
            self.session_factory = get_session_factory()

    def billing_service(self, db: AsyncSession) -> BillingService:
        return BillingService.with_session(
            db,
            self.settings.billing,
            clock=self.clock,
            notifier=self.notifier,
            now=self.now,
        )

    async def run_tick(self, session_id: str) -> TickOutcome:
        """Scheduled tick in its own transaction; a retry outcome is rolled back."""
        self.init_infrastructure()
        assert self.session_factory is not None
        async with self.session_factory() as db:
            service = self.billing_service(db)
            try:
                outcome = await service.tick(session_id)
            except Exception:
                await db.rollback()
                raise
            if outcome.result == TICK_RETRY:
                await db.rollback()
                return outcome
            await db.commit()
            await service.publish_pending()
            logger.debug("Tick for %s: %s", session_id, outcome.result)
            return outcome

    async def shutdown(self) -> None:
        await self.clock.stop_all()


@lru_cache()
def get_container() -> ApplicationContainer:
    container = ApplicationContainer(settings=get_settings())
    container.init_infrastructure()
    return container


__all__ = ["ApplicationContainer", "get_container"]
