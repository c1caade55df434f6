"""Shared test fixtures for settings, async database sessions and code stores."""

from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from toilet_spotter.core.config import Settings
from toilet_spotter.lib.geo import Coordinate
from toilet_spotter.lib.identity import StaticDeviceIdentity
from toilet_spotter.lib.store import MemoryCodeStore, SqlCodeStore, mock_code_records
from toilet_spotter.models.base import Base
from toilet_spotter.services.nearby_resolver import NearbyCodeResolver

CAPITOL_HILL = Coordinate(47.6169, -122.3201)


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        store_backend="memory",
        location_provider="static",
        location_latitude=CAPITOL_HILL.latitude,
        location_longitude=CAPITOL_HILL.longitude,
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def sql_store(async_session: AsyncSession) -> SqlCodeStore:
    """SQL code store over the in-memory database."""
    return SqlCodeStore(async_session)


@pytest.fixture
def memory_store() -> MemoryCodeStore:
    """Empty in-memory code store."""
    return MemoryCodeStore()


@pytest.fixture
def seeded_store() -> MemoryCodeStore:
    """In-memory store holding the fifteen demo codes."""
    return MemoryCodeStore(mock_code_records())


@pytest.fixture
def resolver(seeded_store: MemoryCodeStore) -> NearbyCodeResolver:
    """Resolver over the demo codes for a device that submitted none of them."""
    return NearbyCodeResolver(seeded_store, StaticDeviceIdentity("device_tester"))
