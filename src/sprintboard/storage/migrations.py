"""Lightweight schema bootstrap for file-based SQLite.

Runs on startup for file-based SQLite databases: creates missing tables
and adds columns introduced after the first release.  In-memory SQLite
uses ``create_all`` directly; PostgreSQL is managed by alembic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sprintboard.storage.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# (table, column, DDL) for columns added after the baseline schema.
_ADDED_COLUMNS = [
    ("poker_sessions", "is_open", "BOOLEAN NOT NULL DEFAULT 0"),
    ("retro_sessions", "is_open", "BOOLEAN NOT NULL DEFAULT 0"),
]


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create missing tables and apply pending column additions."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

        for table, column, ddl in _ADDED_COLUMNS:
            rows = await conn.exec_driver_sql(f"PRAGMA table_info({table})")
            columns = {row[1] for row in rows}
            if column not in columns:
                logger.info("Adding '%s' column to %s table", column, table)
                await conn.exec_driver_sql(
                    f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"
                )
