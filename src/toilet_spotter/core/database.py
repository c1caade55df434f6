"""Process-wide async engine and session factory.

The API lifespan, the CLI commands and the SQL code store all share the
engine created by :func:`init_engine`.  Both PostgreSQL (asyncpg) and
SQLite (aiosqlite) URLs are accepted; SQLite connections get foreign
keys switched on so deleting a code removes its votes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _is_sqlite(database_url: str) -> bool:
    return make_url(database_url).get_backend_name() == "sqlite"


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> AsyncEngine:
    """Return the shared engine.

    Raises:
        RuntimeError: If :func:`init_engine` has not run yet.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to the shared engine.

    Raises:
        RuntimeError: If :func:`init_engine` has not run yet.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def init_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Create the shared engine and its session factory.

    In-memory SQLite URLs use a single static connection so every session
    sees the same database.  Server databases get a bounded pool.

    Args:
        database_url: Async connection string.
        **kwargs: Extra arguments for ``create_async_engine``.

    Returns:
        The new engine.
    """
    global _engine, _session_factory  # noqa: PLW0603
    sqlite = _is_sqlite(database_url)
    if sqlite and ":memory:" in database_url:
        kwargs.setdefault("poolclass", StaticPool)
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    elif not sqlite:
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 5)
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_async_engine(database_url, **kwargs)
    if sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    _engine = engine
    _session_factory = async_sessionmaker(engine, expire_on_commit=False)
    logger.debug(f"Database engine ready ({engine.url.get_backend_name()})")
    return engine


async def dispose_engine() -> None:
    """Close the shared engine's connections and forget it."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def engine_scope(database_url: str) -> AsyncGenerator[AsyncEngine]:
    """Initialize the shared engine for one block and dispose it afterwards.

    Used by one-shot CLI commands that have no application lifespan.
    """
    engine = init_engine(database_url)
    try:
        yield engine
    finally:
        await dispose_engine()


async def create_tables() -> None:
    """Create the code and vote tables on the shared engine if missing."""
    from toilet_spotter.models.base import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
