"""Great-circle distance, meter-to-degree conversion and viewport projection."""

import math
from dataclasses import dataclass

EARTH_RADIUS_METERS = 6_371_000.0


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class ViewportPosition:
    """Position of a point inside a map viewport, in percent of its height/width."""

    top_percent: float
    left_percent: float

    @property
    def is_visible(self) -> bool:
        """Whether the position falls inside the viewport rectangle."""
        return 0.0 <= self.top_percent <= 100.0 and 0.0 <= self.left_percent <= 100.0


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine great-circle distance between two points.

    Inputs are not validated; out-of-range degrees produce meaningless but
    finite results.

    Args:
        lat1: Latitude of the first point.
        lon1: Longitude of the first point.
        lat2: Latitude of the second point.
        lon2: Longitude of the second point.

    Returns:
        Distance in meters (non-negative).
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def meters_to_degrees(meters: float, latitude: float) -> float:
    """Convert meters to approximate degrees at a given latitude.

    Used to build bounding-box prefilters around a query point; the exact
    radius check is done afterwards with :func:`distance_meters`.

    Args:
        meters: Distance in meters.
        latitude: WGS84 latitude for longitude scaling.

    Returns:
        Conservative radius in degrees (max of lat/lng conversions).
    """
    if meters <= 0:
        return 0.0

    lat_deg = meters / 111_320
    # Longitude degrees shrink toward the poles; clamp so cos() never reaches 0.
    cos_lat = max(math.cos(math.radians(latitude)), 1e-6)
    lng_deg = meters / (111_320 * cos_lat)
    return max(lat_deg, lng_deg)


def project_to_viewport(
    point: Coordinate,
    viewport_center: Coordinate,
    viewport_span_degrees: float,
) -> ViewportPosition:
    """Place a coordinate inside a square viewport centered on ``viewport_center``.

    The viewport spans ``viewport_span_degrees`` in both latitude and
    longitude.  Latitude grows upward, so the vertical axis is inverted.
    Results are not clamped: points outside the span land outside 0-100 and
    callers decide whether to draw them.

    Args:
        point: Coordinate to place.
        viewport_center: Center of the viewport.
        viewport_span_degrees: Width/height of the viewport in degrees.

    Returns:
        ViewportPosition with top/left percentages.
    """
    half_span = viewport_span_degrees / 2
    normalized_lat = (point.latitude - (viewport_center.latitude - half_span)) / viewport_span_degrees
    normalized_lng = (point.longitude - (viewport_center.longitude - half_span)) / viewport_span_degrees
    return ViewportPosition(
        top_percent=100 - normalized_lat * 100,
        left_percent=normalized_lng * 100,
    )
