"""Nearby access-code discovery with local add/vote bookkeeping.

The resolver keeps the codes around the current center in memory, ordered
by distance.  Successful adds and votes patch that list directly instead of
refetching; the next :meth:`NearbyCodeResolver.refresh` reconciles it with
the store.
"""

from dataclasses import dataclass, replace
from enum import StrEnum

from loguru import logger

from toilet_spotter.lib.geo import Coordinate, distance_meters
from toilet_spotter.lib.identity import DeviceIdentityProvider
from toilet_spotter.lib.store import MAX_CODE_LENGTH, BaseCodeStore, CodeRecord, RemoteUnavailableError
from toilet_spotter.services.duplicate_guard import DuplicateCheckMode, DuplicateGuard
from toilet_spotter.services.vote_ledger import SelfVoteError, VoteFailedError, VoteLedger

DEFAULT_RADIUS_METERS = 1000.0


@dataclass(frozen=True)
class CodeCandidate:
    """A code a user wants to add at a location."""

    code: str
    latitude: float
    longitude: float
    description: str | None = None


class AddCodeOutcome(StrEnum):
    """How an add request ended."""

    ADDED = "added"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(frozen=True)
class AddCodeResult:
    """Result of :meth:`NearbyCodeResolver.add_code`; ``record`` is set only when added."""

    outcome: AddCodeOutcome
    record: CodeRecord | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is AddCodeOutcome.ADDED


def _sort_by_distance(codes: list[CodeRecord]) -> list[CodeRecord]:
    # sorted() is stable, so equal distances keep store order.
    return sorted(codes, key=lambda c: c.distance if c.distance is not None else float("inf"))


class NearbyCodeResolver:
    """Fetches, ranks and mutates the codes around a center point."""

    def __init__(
        self,
        store: BaseCodeStore,
        identity: DeviceIdentityProvider,
        *,
        duplicate_check_mode: DuplicateCheckMode = DuplicateCheckMode.ADVISORY,
    ) -> None:
        self._store = store
        self._identity = identity
        self._guard = DuplicateGuard(store, mode=duplicate_check_mode)
        self._ledger = VoteLedger(store)
        self._codes: list[CodeRecord] = []
        self._center: Coordinate | None = None
        self._radius_meters = DEFAULT_RADIUS_METERS
        self._generation = 0
        self._closed = False

    @property
    def codes(self) -> list[CodeRecord]:
        """Current result set, nearest first."""
        return list(self._codes)

    @property
    def center(self) -> Coordinate | None:
        return self._center

    @property
    def radius_meters(self) -> float:
        return self._radius_meters

    @property
    def closed(self) -> bool:
        return self._closed

    async def query_nearby(self, center: Coordinate, radius_meters: float = DEFAULT_RADIUS_METERS) -> list[CodeRecord]:
        """Fetch the codes within ``radius_meters`` of ``center``, nearest first.

        A store failure is logged and yields an empty list.

        Args:
            center: Query center.
            radius_meters: Search radius.

        Returns:
            Records with ``distance`` populated, sorted ascending by distance.
        """
        try:
            records = await self._store.find_within_radius(center.latitude, center.longitude, radius_meters)
        except RemoteUnavailableError as e:
            logger.error(f"Error getting nearby codes: {e}")
            return []

        return _sort_by_distance(
            [
                r.with_distance(distance_meters(center.latitude, center.longitude, r.latitude, r.longitude))
                for r in records
            ]
        )

    async def refresh(self, center: Coordinate, radius_meters: float = DEFAULT_RADIUS_METERS) -> list[CodeRecord]:
        """Rebuild the result set for a new center.

        If another refresh starts, or the resolver is closed, before this one's
        query returns, its result is discarded.

        Returns:
            The current result set after the refresh.
        """
        if self._closed:
            return self.codes

        self._generation += 1
        generation = self._generation
        codes = await self.query_nearby(center, radius_meters)

        if self._closed or generation != self._generation:
            logger.debug(f"Discarding stale nearby result for ({center.latitude}, {center.longitude})")
            return self.codes

        self._center = center
        self._radius_meters = radius_meters
        self._codes = codes
        return self.codes

    def close(self) -> None:
        """Stop applying results of in-flight refreshes."""
        self._closed = True

    async def add_code(self, candidate: CodeCandidate) -> AddCodeResult:
        """Submit a new code at the candidate's location.

        Args:
            candidate: Code text, optional description and location.

        Returns:
            AddCodeResult describing whether the code was added, rejected as
            invalid, refused as a likely duplicate, or failed in the store.
        """
        code = candidate.code.strip()
        if not code:
            return AddCodeResult(AddCodeOutcome.INVALID, reason="Code must not be empty")
        if len(code) > MAX_CODE_LENGTH:
            return AddCodeResult(
                AddCodeOutcome.INVALID,
                reason=f"Code must be at most {MAX_CODE_LENGTH} characters",
            )
        description = candidate.description.strip() if candidate.description else None

        try:
            if await self._guard.is_duplicate(code, candidate.latitude, candidate.longitude):
                logger.info(f"Duplicate code {code!r} found in the area")
                return AddCodeResult(AddCodeOutcome.DUPLICATE, reason="A matching code already exists nearby")

            device_id = await self._identity.get_or_create_device_id()
            stored = await self._store.insert_code_record(
                CodeRecord(
                    code=code,
                    description=description or None,
                    latitude=candidate.latitude,
                    longitude=candidate.longitude,
                    vote_score=0,
                    device_id=device_id,
                )
            )
        except RemoteUnavailableError as e:
            logger.error(f"Error adding code: {e}")
            return AddCodeResult(AddCodeOutcome.FAILED, reason=e.message)

        if self._center is not None:
            stored = stored.with_distance(
                distance_meters(self._center.latitude, self._center.longitude, stored.latitude, stored.longitude)
            )
        else:
            stored = stored.with_distance(0.0)
        if not self._closed:
            self._codes = _sort_by_distance([*self._codes, stored])
        return AddCodeResult(AddCodeOutcome.ADDED, record=stored)

    async def vote(self, code_id: str, value: int) -> bool:
        """Vote on a code as this device.

        On success the matching record's score is adjusted locally by the
        change the vote caused, not by ``value`` itself: ``+value`` for a
        first vote, ``2 * value`` when it flips an earlier opposite vote and
        0 for a repeat.  This keeps the local score equal to the store's.
        The list order is left alone.

        Returns:
            True if the vote was recorded (or repeated), False if it was a
            self-vote or the store failed.

        Raises:
            ValueError: If ``value`` is not 1 or -1.
        """
        device_id = await self._identity.get_or_create_device_id()
        try:
            delta = await self._ledger.record_vote(code_id, device_id, value)
        except SelfVoteError:
            logger.info(f"Rejected self-vote on {code_id}")
            return False
        except VoteFailedError as e:
            logger.error(f"Error voting on code: {e}")
            return False

        if delta and not self._closed:
            self._codes = [
                replace(c, vote_score=c.vote_score + delta) if c.id == code_id else c for c in self._codes
            ]
        return True
