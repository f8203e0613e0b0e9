"""Shared pytest fixtures for testing."""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment before settings are cached
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECURITY__SECRET_KEY", "test-secret-key")
os.environ.setdefault("BILLING__FREE_TRIAL_SECONDS", "0")

from app.core.config import BillingSettings  # noqa: E402
from app.db import models  # noqa: E402,F401
from app.infrastructure.database.base import Base  # noqa: E402
from app.modules.billing import BillingNotifier, BillingService  # noqa: E402
from app.modules.pricing import PricingService  # noqa: E402
from app.modules.wallets import WalletService  # noqa: E402

START = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable wall clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.value = start

    def __call__(self) -> datetime:
        return self.value

    def advance(self, seconds: float) -> datetime:
        self.value = self.value + timedelta(seconds=seconds)
        return self.value


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Billing Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def billing_settings() -> BillingSettings:
    return BillingSettings(default_rate_per_minute_cents=500, free_trial_seconds=0)


@pytest.fixture
def notifier() -> BillingNotifier:
    return BillingNotifier()


@pytest.fixture
def wallet_service(db_session) -> WalletService:
    return WalletService.with_session(db_session)


@pytest.fixture
def pricing_service(db_session) -> PricingService:
    return PricingService.with_session(db_session)


@pytest.fixture
def billing(db_session, billing_settings, notifier, clock) -> BillingService:
    return BillingService.with_session(db_session, billing_settings, notifier=notifier, now=clock)


@pytest.fixture
def make_billing(db_session, notifier, clock):
    """Billing service with custom settings, e.g. another catch-up policy."""

    def factory(**overrides) -> BillingService:
        settings = BillingSettings(**{"default_rate_per_minute_cents": 500, "free_trial_seconds": 0, **overrides})
        return BillingService.with_session(db_session, settings, notifier=notifier, now=clock)

    return factory


@pytest_asyncio.fixture
async def priced_provider(pricing_service) -> str:
    """Provider charging 5 minor units per minute for every session type."""
    provider_id = "provider_1"
    await pricing_service.update_pricing(
        provider_id,
        chat_rate_cents=5,
        audio_rate_cents=5,
        video_rate_cents=5,
    )
    return provider_id
