"""Location provider returning a fixed, caller-supplied position."""

from toilet_spotter.lib.location.base import BaseLocationProvider, Position, PositionUnavailableError


class StaticLocationProvider(BaseLocationProvider):
    """Returns the configured coordinates; fails when either one is missing."""

    def __init__(self, latitude: float | None = None, longitude: float | None = None) -> None:
        self._latitude = latitude
        self._longitude = longitude

    @property
    def provider_name(self) -> str:
        return "static"

    async def get_current_position(self) -> Position:
        if self._latitude is None or self._longitude is None:
            msg = "No position was provided"
            raise PositionUnavailableError(msg)
        try:
            return Position(latitude=self._latitude, longitude=self._longitude)
        except ValueError as e:
            raise PositionUnavailableError(str(e)) from e
