"""Code store library — pluggable remote storage for access codes and votes.

Public API:
    - BaseCodeStore: Abstract store interface
    - CodeRecord / VoteRecord: Record dataclasses
    - RemoteUnavailableError: Store transport/service failure
    - MemoryCodeStore: In-process store
    - SqlCodeStore: SQLAlchemy async store
    - SupabaseCodeStore: Supabase REST store
    - get_code_store: Backend factory/registry
    - mock_code_records: Demo records around Capitol Hill, Seattle
"""

from typing import Any

from toilet_spotter.lib.store.base import (
    DUPLICATE_RADIUS_METERS,
    MAX_CODE_LENGTH,
    BaseCodeStore,
    CodeRecord,
    RemoteUnavailableError,
    VoteRecord,
)
from toilet_spotter.lib.store.memory import MemoryCodeStore
from toilet_spotter.lib.store.mock_data import MOCK_CENTER, mock_code_records
from toilet_spotter.lib.store.sql import SqlCodeStore
from toilet_spotter.lib.store.supabase import SupabaseCodeStore

# Store registry: all known backends
_STORES: dict[str, type[BaseCodeStore]] = {
    "memory": MemoryCodeStore,
    "sql": SqlCodeStore,
    "supabase": SupabaseCodeStore,
}


def get_available_stores() -> list[str]:
    """Return the names of all registered store backends."""
    return sorted(_STORES.keys())


def get_code_store(backend: str = "memory", **kwargs: Any) -> BaseCodeStore:
    """Get a code store instance by backend name.

    Args:
        backend: Backend name (e.g., "sql").
        **kwargs: Arguments forwarded to the store constructor
            (e.g., ``session=...`` for sql, ``url=...`` for supabase).

    Returns:
        An instance of the requested store.

    Raises:
        ValueError: If the backend is not registered.
    """
    cls = _STORES.get(backend)
    if cls is None:
        msg = f"Unknown code store backend: {backend!r}. Available: {list(_STORES.keys())}"
        raise ValueError(msg)
    return cls(**kwargs)


__all__ = [
    "DUPLICATE_RADIUS_METERS",
    "MAX_CODE_LENGTH",
    "MOCK_CENTER",
    "BaseCodeStore",
    "CodeRecord",
    "MemoryCodeStore",
    "RemoteUnavailableError",
    "SqlCodeStore",
    "SupabaseCodeStore",
    "VoteRecord",
    "get_available_stores",
    "get_code_store",
    "mock_code_records",
]
