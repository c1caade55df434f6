"""In-process code store.

Keeps codes and votes in dictionaries guarded by an ``asyncio.Lock`` so
score recomputation is atomic with respect to other coroutines sharing the
store.  Used by the test suite and by the ``memory`` backend for demos.
"""

import asyncio
import uuid
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime

from toilet_spotter.lib.geo import distance_meters
from toilet_spotter.lib.store.base import BaseCodeStore, CodeRecord, RemoteUnavailableError, VoteRecord


class MemoryCodeStore(BaseCodeStore):
    """Dictionary-backed code store."""

    def __init__(self, records: Iterable[CodeRecord] = ()) -> None:
        self._codes: dict[str, CodeRecord] = {}
        self._votes: dict[str, VoteRecord] = {}
        self._lock = asyncio.Lock()
        for record in records:
            self._store_code(record)

    @property
    def store_name(self) -> str:
        return "memory"

    def _store_code(self, record: CodeRecord) -> CodeRecord:
        stored = replace(
            record,
            id=record.id or str(uuid.uuid4()),
            created_at=record.created_at or datetime.now(UTC),
            distance=None,
        )
        self._codes[stored.id] = stored
        return stored

    @property
    def codes(self) -> list[CodeRecord]:
        """Snapshot of stored codes in insertion order."""
        return [replace(c) for c in self._codes.values()]

    @property
    def votes(self) -> list[VoteRecord]:
        """Snapshot of stored votes in insertion order."""
        return [replace(v) for v in self._votes.values()]

    async def get_code(self, code_id: str) -> CodeRecord | None:
        """Return a copy of a stored code, or None."""
        code = self._codes.get(code_id)
        return replace(code) if code else None

    async def find_within_radius(self, latitude: float, longitude: float, radius_meters: float) -> list[CodeRecord]:
        return [
            replace(c)
            for c in self._codes.values()
            if distance_meters(latitude, longitude, c.latitude, c.longitude) <= radius_meters
        ]

    async def find_duplicate_within_radius(
        self,
        code: str,
        latitude: float,
        longitude: float,
        radius_meters: float,
    ) -> bool:
        return any(
            c.code == code and distance_meters(latitude, longitude, c.latitude, c.longitude) <= radius_meters
            for c in self._codes.values()
        )

    async def insert_code_record(self, record: CodeRecord) -> CodeRecord:
        async with self._lock:
            return replace(self._store_code(replace(record, id=None, created_at=None)))

    async def find_vote(self, code_id: str, device_id: str) -> VoteRecord | None:
        for vote in self._votes.values():
            if vote.code_id == code_id and vote.device_id == device_id:
                return replace(vote)
        return None

    async def insert_vote(self, vote: VoteRecord) -> VoteRecord:
        async with self._lock:
            if vote.code_id not in self._codes:
                raise RemoteUnavailableError("memory", f"Unknown code {vote.code_id}")
            if any(v.code_id == vote.code_id and v.device_id == vote.device_id for v in self._votes.values()):
                raise RemoteUnavailableError("memory", f"Device {vote.device_id} already voted on {vote.code_id}")
            stored = replace(vote, id=str(uuid.uuid4()), created_at=datetime.now(UTC))
            self._votes[stored.id] = stored
            return replace(stored)

    async def update_vote(self, vote_id: str, value: int) -> None:
        async with self._lock:
            if vote_id not in self._votes:
                raise RemoteUnavailableError("memory", f"Unknown vote {vote_id}")
            self._votes[vote_id] = replace(self._votes[vote_id], value=value)

    async def recompute_score(self, code_id: str) -> None:
        async with self._lock:
            if code_id not in self._codes:
                raise RemoteUnavailableError("memory", f"Unknown code {code_id}")
            total = sum(v.value for v in self._votes.values() if v.code_id == code_id)
            self._codes[code_id] = replace(self._codes[code_id], vote_score=total)

    async def get_code_owner(self, code_id: str) -> str | None:
        code = self._codes.get(code_id)
        return code.device_id if code else None
