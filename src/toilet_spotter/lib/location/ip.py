"""IP-based geolocation provider.

Queries an ip-api style endpoint (``{"status": "success", "lat": .., "lon": ..}``)
for a coarse position of the current network.  Consent plays the role of the
permission prompt: without it no request is made.
"""

import httpx
from loguru import logger

from toilet_spotter.lib.location.base import (
    BaseLocationProvider,
    LocationTimeoutError,
    PermissionDeniedError,
    Position,
    PositionUnavailableError,
)

DEFAULT_URL = "http://ip-api.com/json"
DEFAULT_TIMEOUT = 15.0


class IpGeolocationProvider(BaseLocationProvider):
    """Coarse position from the public IP address."""

    def __init__(
        self,
        url: str = DEFAULT_URL,
        timeout: float = DEFAULT_TIMEOUT,
        consent: bool = True,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._consent = consent

    @property
    def provider_name(self) -> str:
        return "ip"

    async def get_current_position(self) -> Position:
        if not self._consent:
            msg = "Location permission denied"
            raise PermissionDeniedError(msg)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._url)
                response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning("IP geolocation timeout")
            msg = "Location request timed out"
            raise LocationTimeoutError(msg) from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"IP geolocation HTTP error {e.response.status_code}")
            msg = f"Location service returned HTTP {e.response.status_code}"
            raise PositionUnavailableError(msg) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("IP geolocation request failed")
            msg = "Location service unreachable"
            raise PositionUnavailableError(msg) from e

        return self._parse_response(data)

    @staticmethod
    def _parse_response(data: object) -> Position:
        """Parse an ip-api style response into a Position.

        Raises:
            PositionUnavailableError: If the response carries no usable fix.
        """
        if not isinstance(data, dict):
            msg = "Location service returned an unexpected response"
            raise PositionUnavailableError(msg)
        if data.get("status", "success") != "success":
            msg = f"Location service could not resolve position: {data.get('message', 'unknown')}"
            raise PositionUnavailableError(msg)
        try:
            return Position(latitude=float(data["lat"]), longitude=float(data["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            msg = "Location service returned no coordinates"
            raise PositionUnavailableError(msg) from e
