"""SQLite engine and per-operation sessions.

Every component opens its own short session through ``get_session``; a block
that exits normally is committed, one that raises is rolled back.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rollcall.db.models import Base

logger = logging.getLogger(__name__)

# Seconds a writer waits on a locked database before giving up.
BUSY_TIMEOUT = 15


def create_engine(database_url: str) -> AsyncEngine:
    """Async engine with foreign keys enforced on every connection.

    File databases also switch to WAL so reaction writes, slash commands and the
    retention sweep can overlap without "database is locked" errors.
    """
    in_memory = ":memory:" in database_url
    engine = create_async_engine(database_url, connect_args={"timeout": BUSY_TIMEOUT})

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_conn: object, _record: object) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[union-attr]
        # Deleting a team or event cascades down to responses.
        cursor.execute("PRAGMA foreign_keys=ON")
        if not in_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT * 1000}")
        cursor.close()

    return engine


@functools.cache
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """One sessionmaker per engine. Rows stay readable after their session commits."""
    return async_sessionmaker(engine, expire_on_commit=False)


@asynccontextmanager
async def get_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session inside a transaction that commits on exit or rolls back on error."""
    async with session_factory(engine)() as session, session.begin():
        yield session


async def init_schema(engine: AsyncEngine) -> None:
    """Create any missing tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db_schema_ready tables=%d", len(Base.metadata.tables))
