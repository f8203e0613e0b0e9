"""Dialect-aware INSERT ... ON CONFLICT DO NOTHING helper."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


async def insert_if_absent(
    session: AsyncSession,
    model: Any,
    values: dict[str, Any],
    *,
    index_elements: list[str],
) -> bool:
    """Insert a row unless its key already exists. Returns True when inserted."""
    dialect = session.bind.dialect.name if session.bind is not None else "sqlite"
    if dialect == "postgresql":
        stmt = postgresql.insert(model).values(**values)
    else:
        stmt = sqlite.insert(model).values(**values)
    stmt = stmt.on_conflict_do_nothing(index_elements=index_elements)
    result = await session.execute(stmt)
    return bool(result.rowcount)


__all__ = ["insert_if_absent"]
