"""Alembic migration environment for the access code and vote tables.

The database URL always comes from ``DATABASE_URL`` via application
settings, so migrations target the same database as the server.  SQLite
needs batch mode for ALTER-style operations.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

import toilet_spotter.models  # noqa: F401  registers the tables on Base.metadata
from toilet_spotter.core.config import get_settings
from toilet_spotter.models.base import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

DATABASE_URL = get_settings().database_url
COMMON_OPTIONS = {"target_metadata": Base.metadata, "compare_type": True}


def _migrate(connection: Connection) -> None:
    context.configure(
        connection=connection,
        render_as_batch=connection.dialect.name == "sqlite",
        **COMMON_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    # Emits SQL to stdout; batch mode keeps the script SQLite-compatible
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
        **COMMON_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_migrate_online())
