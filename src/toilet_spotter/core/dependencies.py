"""FastAPI dependency injection for sessions, code stores and resolvers.

Requests identify their device through the ``X-Device-Id`` header; write
endpoints require it, read endpoints fall back to a throwaway identity.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from toilet_spotter.core.config import Settings, get_settings
from toilet_spotter.core.database import get_session_factory
from toilet_spotter.lib.identity import StaticDeviceIdentity, generate_device_id
from toilet_spotter.lib.store import BaseCodeStore, MemoryCodeStore, get_code_store
from toilet_spotter.services.duplicate_guard import DuplicateCheckMode
from toilet_spotter.services.nearby_resolver import NearbyCodeResolver

_memory_store: MemoryCodeStore | None = None


def get_memory_store() -> MemoryCodeStore:
    """Return the process-wide in-memory store, creating it on first use."""
    global _memory_store  # noqa: PLW0603
    if _memory_store is None:
        _memory_store = MemoryCodeStore()
    return _memory_store


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def get_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[BaseCodeStore]:
    """Yield the code store selected by ``STORE_BACKEND``."""
    if settings.store_backend == "memory":
        yield get_memory_store()
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

    factory = get_session_factory()
    async with factory() as session:
        yield get_code_store("sql", session=session)


def require_device_id(
    x_device_id: Annotated[str | None, Header()] = None,
) -> str:
    """Return the caller's device id or reject the request.

    Raises:
        HTTPException: 400 if the ``X-Device-Id`` header is missing or blank.
    """
    if x_device_id is None or not x_device_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Device-Id header is required",
        )
    return x_device_id.strip()


def get_resolver(
    store: Annotated[BaseCodeStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    x_device_id: Annotated[str | None, Header()] = None,
) -> NearbyCodeResolver:
    """Build a per-request resolver bound to the caller's device identity."""
    device_id = x_device_id.strip() if x_device_id and x_device_id.strip() else generate_device_id()
    return NearbyCodeResolver(
        store,
        StaticDeviceIdentity(device_id),
        duplicate_check_mode=DuplicateCheckMode(settings.duplicate_check_mode),
    )
