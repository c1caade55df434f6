"""Abstract remote code store interface for pluggable backend support."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime

DUPLICATE_RADIUS_METERS = 50.0
MAX_CODE_LENGTH = 10


@dataclass
class CodeRecord:
    """A community-submitted access code tied to a place.

    ``id`` and ``created_at`` are assigned by the store on insert.
    ``distance`` is derived at query time and never persisted.
    """

    code: str
    latitude: float
    longitude: float
    description: str | None = None
    id: str | None = None
    created_at: datetime | None = None
    vote_score: int = 0
    device_id: str | None = None
    distance: float | None = None

    def with_distance(self, distance: float) -> "CodeRecord":
        """Return a copy carrying the given distance from the query center."""
        return replace(self, distance=distance)


@dataclass
class VoteRecord:
    """One device's stance on one code (+1 or -1)."""

    code_id: str
    device_id: str
    value: int
    id: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.value not in (1, -1):
            msg = f"vote value must be 1 or -1, got {self.value}"
            raise ValueError(msg)


class RemoteUnavailableError(Exception):
    """Raised when a code store experiences a transport or service error.

    Args:
        store_name: Name of the failing store backend.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the backend.
    """

    def __init__(self, store_name: str, message: str, status_code: int | None = None) -> None:
        self.store_name = store_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{store_name}: {message}")


class BaseCodeStore(ABC):
    """Abstract code store. All backends must implement this.

    Implementations raise :class:`RemoteUnavailableError` for any backend
    failure so callers can apply a single recovery policy.
    """

    @property
    @abstractmethod
    def store_name(self) -> str:
        """Unique name identifying this store backend."""

    @property
    def is_configured(self) -> bool:
        """Whether this store has all required configuration (e.g., credentials)."""
        return True

    @abstractmethod
    async def find_within_radius(self, latitude: float, longitude: float, radius_meters: float) -> list[CodeRecord]:
        """Return every code within ``radius_meters`` of the point, in store order."""

    @abstractmethod
    async def find_duplicate_within_radius(
        self,
        code: str,
        latitude: float,
        longitude: float,
        radius_meters: float,
    ) -> bool:
        """Whether a code with the same text exists within ``radius_meters``."""

    @abstractmethod
    async def insert_code_record(self, record: CodeRecord) -> CodeRecord:
        """Insert a code and return the stored record with id and timestamp."""

    @abstractmethod
    async def find_vote(self, code_id: str, device_id: str) -> VoteRecord | None:
        """Return the device's vote on a code, if any."""

    @abstractmethod
    async def insert_vote(self, vote: VoteRecord) -> VoteRecord:
        """Insert a new vote and return the stored record."""

    @abstractmethod
    async def update_vote(self, vote_id: str, value: int) -> None:
        """Change the value of an existing vote."""

    @abstractmethod
    async def recompute_score(self, code_id: str) -> None:
        """Atomically write the sum of a code's votes into its vote score."""

    @abstractmethod
    async def get_code_owner(self, code_id: str) -> str | None:
        """Return the submitting device id of a code, or None if it does not exist."""

    async def close(self) -> None:
        """Release backend resources. Default is a no-op."""
