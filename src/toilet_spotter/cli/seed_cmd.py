"""CLI command for loading the demo codes into the configured store."""

import asyncio

import typer
from loguru import logger


def seed() -> None:
    """Insert the fifteen demo codes around Capitol Hill, Seattle."""
    asyncio.run(_seed())


async def _seed() -> None:
    from toilet_spotter.cli.codes_cmd import open_code_store
    from toilet_spotter.core.config import get_settings
    from toilet_spotter.lib.store import DUPLICATE_RADIUS_METERS, RemoteUnavailableError, mock_code_records

    settings = get_settings()
    if settings.store_backend == "memory":
        typer.echo("The memory backend is pre-seeded on every run; nothing to do.")
        return

    inserted = 0
    async with open_code_store(settings) as store:
        for record in mock_code_records():
            try:
                if await store.find_duplicate_within_radius(
                    record.code, record.latitude, record.longitude, DUPLICATE_RADIUS_METERS
                ):
                    logger.info(f"Skipping existing code {record.code}")
                    continue
                await store.insert_code_record(record)
                inserted += 1
            except RemoteUnavailableError as e:
                logger.error(f"Seeding stopped: {e}")
                raise typer.Exit(code=1) from e

    typer.echo(f"Seeded {inserted} codes")
