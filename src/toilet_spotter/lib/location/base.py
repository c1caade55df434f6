"""Location capability interface and typed acquisition failures."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class Position:
    """A device position in WGS84 decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not (-90 <= self.latitude <= 90):
            msg = f"latitude must be between -90 and 90, got {self.latitude}"
            raise ValueError(msg)
        if not (-180 <= self.longitude <= 180):
            msg = f"longitude must be between -180 and 180, got {self.longitude}"
            raise ValueError(msg)


class LocationErrorKind(StrEnum):
    """Why a position could not be acquired."""

    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


class LocationError(Exception):
    """Base class for location acquisition failures."""

    kind: LocationErrorKind = LocationErrorKind.POSITION_UNAVAILABLE


class PermissionDeniedError(LocationError):
    """The user did not allow looking up their position."""

    kind = LocationErrorKind.PERMISSION_DENIED


class PositionUnavailableError(LocationError):
    """The position source could not produce a fix."""

    kind = LocationErrorKind.POSITION_UNAVAILABLE


class LocationTimeoutError(LocationError):
    """The position source did not answer in time."""

    kind = LocationErrorKind.TIMEOUT


class BaseLocationProvider(ABC):
    """Abstract location provider. All providers must implement this."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this location provider."""

    @abstractmethod
    async def get_current_position(self) -> Position:
        """Return the current position.

        Raises:
            PermissionDeniedError: If the user declined location access.
            PositionUnavailableError: If no position could be determined.
            LocationTimeoutError: If the lookup timed out.
        """
