"""Location library — device position acquisition with graceful fallback.

Public API:
    - BaseLocationProvider: Abstract provider interface
    - Position: Latitude/longitude fix
    - LocationError and subclasses: typed acquisition failures
    - StaticLocationProvider / IpGeolocationProvider: providers
    - PositionFix / resolve_position: fallback-substituting lookup
    - get_location_provider: Provider factory from settings
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from toilet_spotter.lib.location.base import (
    BaseLocationProvider,
    LocationError,
    LocationErrorKind,
    LocationTimeoutError,
    PermissionDeniedError,
    Position,
    PositionUnavailableError,
)
from toilet_spotter.lib.location.ip import IpGeolocationProvider
from toilet_spotter.lib.location.static import StaticLocationProvider

if TYPE_CHECKING:
    from toilet_spotter.core.config import Settings

# User-facing explanations shown next to a fallback map
LOCATION_ERROR_MESSAGES: dict[LocationErrorKind, str] = {
    LocationErrorKind.PERMISSION_DENIED: (
        "Location permission denied. To enable, allow location access and try again."
    ),
    LocationErrorKind.POSITION_UNAVAILABLE: "Your location is currently unavailable. Please try again later.",
    LocationErrorKind.TIMEOUT: "Location request timed out. Please check your connection and try again.",
}


@dataclass(frozen=True)
class PositionFix:
    """Outcome of a position lookup; ``error`` is set when the fallback was used."""

    position: Position
    error: LocationErrorKind | None = None

    @property
    def is_fallback(self) -> bool:
        return self.error is not None

    @property
    def message(self) -> str | None:
        return LOCATION_ERROR_MESSAGES[self.error] if self.error else None


async def resolve_position(provider: BaseLocationProvider, fallback: Position) -> PositionFix:
    """Get the current position, substituting ``fallback`` on any location error.

    Args:
        provider: Location provider to query.
        fallback: Position used when acquisition fails.

    Returns:
        PositionFix with the acquired or fallback position.
    """
    try:
        return PositionFix(position=await provider.get_current_position())
    except LocationError as e:
        logger.warning(f"Location unavailable via {provider.provider_name} ({e.kind}): {e}; using fallback")
        return PositionFix(position=fallback, error=e.kind)


def get_location_provider(settings: Settings) -> BaseLocationProvider:
    """Build the location provider selected in settings."""
    if settings.location_provider == "static":
        return StaticLocationProvider(settings.location_latitude, settings.location_longitude)
    return IpGeolocationProvider(
        url=settings.ip_geolocation_url,
        timeout=settings.location_timeout,
        consent=settings.location_consent,
    )


__all__ = [
    "LOCATION_ERROR_MESSAGES",
    "BaseLocationProvider",
    "IpGeolocationProvider",
    "LocationError",
    "LocationErrorKind",
    "LocationTimeoutError",
    "PermissionDeniedError",
    "Position",
    "PositionFix",
    "PositionUnavailableError",
    "StaticLocationProvider",
    "get_location_provider",
    "resolve_position",
]
