"""CLI commands for browsing, adding and voting on nearby codes."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import typer

if TYPE_CHECKING:
    from toilet_spotter.core.config import Settings
    from toilet_spotter.lib.geo import Coordinate
    from toilet_spotter.lib.store import BaseCodeStore, CodeRecord
    from toilet_spotter.services.nearby_resolver import NearbyCodeResolver


@asynccontextmanager
async def open_code_store(settings: Settings) -> AsyncGenerator[BaseCodeStore]:
    """Open the configured code store for the duration of a command."""
    from toilet_spotter.core.database import engine_scope, get_session_factory
    from toilet_spotter.lib.store import MemoryCodeStore, get_code_store, mock_code_records

    if settings.store_backend == "memory":
        yield MemoryCodeStore(mock_code_records())
        return

    if settings.store_backend == "supabase":
        store = get_code_store(
            "supabase",
            url=settings.supabase_url or "",
            anon_key=settings.supabase_anon_key or "",
            timeout=settings.supabase_timeout,
        )
        try:
            yield store
        finally:
            await store.close()
        return

    async with engine_scope(settings.database_url), get_session_factory()() as session:
        yield get_code_store("sql", session=session)


def _build_resolver(settings: Settings, store: BaseCodeStore) -> NearbyCodeResolver:
    from toilet_spotter.lib.identity import FileDeviceIdentity
    from toilet_spotter.services.duplicate_guard import DuplicateCheckMode
    from toilet_spotter.services.nearby_resolver import NearbyCodeResolver

    return NearbyCodeResolver(
        store,
        FileDeviceIdentity(settings.device_id_path),
        duplicate_check_mode=DuplicateCheckMode(settings.duplicate_check_mode),
    )


async def _locate(settings: Settings, lat: float | None, lon: float | None) -> Coordinate:
    """Use explicit coordinates when given, else the configured provider with fallback."""
    from toilet_spotter.lib.geo import Coordinate
    from toilet_spotter.lib.location import (
        Position,
        StaticLocationProvider,
        get_location_provider,
        resolve_position,
    )

    provider = StaticLocationProvider(lat, lon) if lat is not None and lon is not None else None
    fix = await resolve_position(
        provider or get_location_provider(settings),
        Position(settings.fallback_latitude, settings.fallback_longitude),
    )
    if fix.message:
        typer.echo(f"{fix.message} Showing codes around the default location.", err=True)
    return Coordinate(fix.position.latitude, fix.position.longitude)


def _format_code(record: CodeRecord) -> str:
    distance = f"{record.distance:7.0f} m" if record.distance is not None else "      - m"
    description = f"  {record.description}" if record.description else ""
    return f"{distance}  {record.code:<10}  {record.vote_score:+4d}  [{record.id}]{description}"


def nearby(
    lat: float | None = typer.Option(None, "--lat", help="Latitude (-90 to 90)"),  # noqa: B008
    lon: float | None = typer.Option(None, "--lon", help="Longitude (-180 to 180)"),  # noqa: B008
    radius: float | None = typer.Option(None, "--radius", help="Search radius in meters"),  # noqa: B008
) -> None:
    """List codes near a location, nearest first."""
    asyncio.run(_nearby(lat, lon, radius))


async def _nearby(lat: float | None, lon: float | None, radius: float | None) -> None:
    from toilet_spotter.core.config import get_settings

    settings = get_settings()
    center = await _locate(settings, lat, lon)
    async with open_code_store(settings) as store:
        resolver = _build_resolver(settings, store)
        codes = await resolver.refresh(center, radius or settings.search_radius_meters)

    if not codes:
        typer.echo("No codes found nearby.")
        return
    for record in codes:
        typer.echo(_format_code(record))


def add(
    code: str = typer.Argument(..., help="Access code text (max 10 characters)"),  # noqa: B008
    description: str | None = typer.Option(None, "--description", "-d", help="Where to find it"),  # noqa: B008
    lat: float | None = typer.Option(None, "--lat", help="Latitude (-90 to 90)"),  # noqa: B008
    lon: float | None = typer.Option(None, "--lon", help="Longitude (-180 to 180)"),  # noqa: B008
) -> None:
    """Add a code at your current location."""
    asyncio.run(_add(code, description, lat, lon))


async def _add(code: str, description: str | None, lat: float | None, lon: float | None) -> None:
    from toilet_spotter.core.config import get_settings
    from toilet_spotter.services.nearby_resolver import AddCodeOutcome, CodeCandidate

    settings = get_settings()
    center = await _locate(settings, lat, lon)
    async with open_code_store(settings) as store:
        resolver = _build_resolver(settings, store)
        result = await resolver.add_code(
            CodeCandidate(code=code, description=description, latitude=center.latitude, longitude=center.longitude)
        )

    if result.outcome is AddCodeOutcome.ADDED and result.record is not None:
        typer.echo(f"Added code {result.record.code} [{result.record.id}]")
        return
    if result.outcome is AddCodeOutcome.DUPLICATE:
        typer.echo("Not added: the same code was already submitted nearby.", err=True)
    else:
        typer.echo(f"Not added: {result.reason}", err=True)
    raise typer.Exit(code=1)


def vote(
    code_id: str = typer.Argument(..., help="Code identifier"),  # noqa: B008
    down: bool = typer.Option(False, "--down", help="Downvote instead of upvote"),  # noqa: FBT001
) -> None:
    """Upvote (default) or downvote a code."""
    asyncio.run(_vote(code_id, -1 if down else 1))


async def _vote(code_id: str, value: int) -> None:
    from toilet_spotter.core.config import get_settings

    settings = get_settings()
    async with open_code_store(settings) as store:
        resolver = _build_resolver(settings, store)
        ok = await resolver.vote(code_id, value)

    if not ok:
        typer.echo("Vote not recorded. You might be voting on your own submission.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Vote {'up' if value > 0 else 'down'} recorded for {code_id}")


def map_view(
    lat: float | None = typer.Option(None, "--lat", help="Latitude (-90 to 90)"),  # noqa: B008
    lon: float | None = typer.Option(None, "--lon", help="Longitude (-180 to 180)"),  # noqa: B008
    radius: float | None = typer.Option(None, "--radius", help="Search radius in meters"),  # noqa: B008
) -> None:
    """Print the map URL and where each nearby code sits on it."""
    asyncio.run(_map_view(lat, lon, radius))


async def _map_view(lat: float | None, lon: float | None, radius: float | None) -> None:
    from toilet_spotter.core.config import get_settings
    from toilet_spotter.lib.location import Position, StaticLocationProvider, get_location_provider
    from toilet_spotter.services.map_service import build_map_view

    settings = get_settings()
    provider = (
        StaticLocationProvider(lat, lon) if lat is not None and lon is not None else get_location_provider(settings)
    )
    async with open_code_store(settings) as store:
        view = await build_map_view(
            _build_resolver(settings, store),
            provider,
            fallback=Position(settings.fallback_latitude, settings.fallback_longitude),
            radius_meters=radius or settings.search_radius_meters,
            span_degrees=settings.map_span_degrees,
        )

    if view.location_error:
        typer.echo(view.location_error, err=True)
    typer.echo(view.embed_url)
    for marker in view.markers:
        typer.echo(
            f"  top {marker.position.top_percent:5.1f}%  left {marker.position.left_percent:5.1f}%  "
            f"{marker.record.code}"
        )


def device_id() -> None:
    """Show this installation's anonymous device id."""
    asyncio.run(_device_id())


async def _device_id() -> None:
    from toilet_spotter.core.config import get_settings
    from toilet_spotter.lib.identity import FileDeviceIdentity

    settings = get_settings()
    typer.echo(await FileDeviceIdentity(settings.device_id_path).get_or_create_device_id())
