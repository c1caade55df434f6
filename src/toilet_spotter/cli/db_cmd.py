"""Schema management commands: Alembic migrations and a create-all shortcut."""

import asyncio
from pathlib import Path

import typer
from loguru import logger

db_app = typer.Typer()


@db_app.callback()
def _db_callback(
    ctx: typer.Context,
    config: Path = typer.Option(Path("alembic.ini"), "--config", "-c", help="Alembic configuration file"),
) -> None:
    """Schema commands share one Alembic configuration."""
    ctx.obj = config


def _alembic_config(ctx: typer.Context):  # noqa: ANN202
    from alembic.config import Config

    if not ctx.obj.is_file():
        logger.error(f"Alembic config not found: {ctx.obj}")
        raise typer.Exit(code=1)
    return Config(str(ctx.obj))


@db_app.command()
def upgrade(
    ctx: typer.Context,
    revision: str = typer.Argument("head", help="Target revision"),
) -> None:
    """Apply migrations up to REVISION."""
    from alembic import command

    logger.info(f"Migrating schema up to {revision}")
    command.upgrade(_alembic_config(ctx), revision)


@db_app.command()
def downgrade(
    ctx: typer.Context,
    revision: str = typer.Argument("-1", help="Target revision"),
) -> None:
    """Revert migrations down to REVISION."""
    from alembic import command

    logger.info(f"Migrating schema down to {revision}")
    command.downgrade(_alembic_config(ctx), revision)


@db_app.command()
def current(ctx: typer.Context) -> None:
    """Print the revision the database is at."""
    from alembic import command

    command.current(_alembic_config(ctx), verbose=True)


@db_app.command("create-all")
def create_all() -> None:
    """Create the tables straight from the ORM models, skipping migrations."""
    asyncio.run(_create_all())


async def _create_all() -> None:
    from toilet_spotter.core.config import get_settings
    from toilet_spotter.core.database import create_tables, engine_scope

    database_url = get_settings().database_url
    async with engine_scope(database_url):
        await create_tables()
    logger.info(f"Created code and vote tables in {database_url}")
