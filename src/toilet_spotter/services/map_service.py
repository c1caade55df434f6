"""Map presentation: viewport, tile embed URL and projected code markers."""

from dataclasses import dataclass, field
from urllib.parse import urlencode

from toilet_spotter.lib.geo import Coordinate, ViewportPosition, project_to_viewport
from toilet_spotter.lib.location import BaseLocationProvider, Position, PositionFix, resolve_position
from toilet_spotter.lib.store import CodeRecord
from toilet_spotter.services.nearby_resolver import DEFAULT_RADIUS_METERS, NearbyCodeResolver

OSM_EMBED_URL = "https://www.openstreetmap.org/export/embed.html"
DEFAULT_SPAN_DEGREES = 0.02


@dataclass(frozen=True)
class BoundingBox:
    """Viewport bounds in degrees."""

    min_longitude: float
    min_latitude: float
    max_longitude: float
    max_latitude: float


@dataclass(frozen=True)
class MapMarker:
    """A code placed on the map viewport."""

    record: CodeRecord
    position: ViewportPosition


@dataclass
class MapView:
    """Everything needed to draw the map screen."""

    center: Coordinate
    span_degrees: float
    bbox: BoundingBox
    embed_url: str
    markers: list[MapMarker] = field(default_factory=list)
    location_error: str | None = None
    is_fallback_location: bool = False


def viewport_bbox(center: Coordinate, span_degrees: float) -> BoundingBox:
    """Square bounding box of ``span_degrees`` around ``center``."""
    half = span_degrees / 2
    return BoundingBox(
        min_longitude=center.longitude - half,
        min_latitude=center.latitude - half,
        max_longitude=center.longitude + half,
        max_latitude=center.latitude + half,
    )


def build_embed_url(center: Coordinate, bbox: BoundingBox) -> str:
    """OpenStreetMap embed URL showing ``bbox`` with a marker at ``center``."""
    query = urlencode(
        {
            "bbox": f"{bbox.min_longitude},{bbox.min_latitude},{bbox.max_longitude},{bbox.max_latitude}",
            "layer": "mapnik",
            "marker": f"{center.latitude},{center.longitude}",
        }
    )
    return f"{OSM_EMBED_URL}?{query}"


def place_markers(codes: list[CodeRecord], center: Coordinate, span_degrees: float) -> list[MapMarker]:
    """Project codes into the viewport, dropping those that fall outside it."""
    markers: list[MapMarker] = []
    for record in codes:
        position = project_to_viewport(
            Coordinate(record.latitude, record.longitude),
            center,
            span_degrees,
        )
        if position.is_visible:
            markers.append(MapMarker(record=record, position=position))
    return markers


async def build_map_view(
    resolver: NearbyCodeResolver,
    location_provider: BaseLocationProvider,
    *,
    fallback: Position,
    radius_meters: float = DEFAULT_RADIUS_METERS,
    span_degrees: float = DEFAULT_SPAN_DEGREES,
) -> MapView:
    """Locate the device, refresh nearby codes and lay them out on the map.

    When the location cannot be acquired, the fallback position is used and
    ``location_error`` carries a message for the user.

    Args:
        resolver: Resolver holding the nearby result set.
        location_provider: Source of the device position.
        fallback: Position used when the location lookup fails.
        radius_meters: Search radius around the center.
        span_degrees: Viewport width/height in degrees.

    Returns:
        The assembled MapView.
    """
    fix: PositionFix = await resolve_position(location_provider, fallback)
    center = Coordinate(fix.position.latitude, fix.position.longitude)
    codes = await resolver.refresh(center, radius_meters)

    bbox = viewport_bbox(center, span_degrees)
    return MapView(
        center=center,
        span_degrees=span_degrees,
        bbox=bbox,
        embed_url=build_embed_url(center, bbox),
        markers=place_markers(codes, center, span_degrees),
        location_error=fix.message,
        is_fallback_location=fix.is_fallback,
    )
