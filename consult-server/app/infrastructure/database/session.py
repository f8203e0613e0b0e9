"""Async engine, session factory and transaction scopes."""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.config import DatabaseSettings, get_settings
from app.infrastructure.database.base import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options(database: DatabaseSettings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` suited to the backend."""
    options: dict[str, Any] = {"echo": database.echo}
    if database.url.startswith("sqlite"):
        # the billing clock and request handlers share the file from one loop
        options["connect_args"] = {"check_same_thread": False}
        if database.url.rstrip("/").endswith(("sqlite+aiosqlite:", ":memory:")):
            options["poolclass"] = StaticPool
        return options
    if database.pool_size is not None:
        options["pool_size"] = database.pool_size
    if database.max_overflow is not None:
        options["max_overflow"] = database.max_overflow
    return options


def get_engine() -> AsyncEngine:
    global _engine, _session_factory
    if _engine is None:
        database = get_settings().database
        _engine = create_async_engine(database.url, **engine_options(database))
        _session_factory = async_sessionmaker(bind=_engine, class_=AsyncSession, expire_on_commit=False)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        get_engine()
    assert _session_factory is not None
    return _session_factory


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """One unit of work: commit on success, roll back on any error."""
    async with (factory or get_session_factory())() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with session_scope() as session:
        yield session


async def init_db() -> None:
    """Create missing tables; deployed databases are managed by Alembic."""
    from app.db import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
