"""Map screen endpoint — viewport, tile URL and code markers."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from toilet_spotter.core.config import Settings, get_settings
from toilet_spotter.core.dependencies import get_resolver
from toilet_spotter.lib.location import Position, StaticLocationProvider
from toilet_spotter.schemas.access_code import AccessCodeResponse
from toilet_spotter.schemas.map_view import (
    BoundingBoxResponse,
    CoordinateResponse,
    MapMarkerResponse,
    MapViewResponse,
)
from toilet_spotter.services.map_service import MapView, build_map_view
from toilet_spotter.services.nearby_resolver import NearbyCodeResolver

map_router = APIRouter(prefix="/map", tags=["map"])


def map_view_response(view: MapView) -> MapViewResponse:
    """Convert a MapView into its API representation."""
    return MapViewResponse(
        center=CoordinateResponse.model_validate(view.center),
        span_degrees=view.span_degrees,
        bbox=BoundingBoxResponse.model_validate(view.bbox),
        embed_url=view.embed_url,
        markers=[
            MapMarkerResponse(
                code=AccessCodeResponse.model_validate(m.record),
                top_percent=m.position.top_percent,
                left_percent=m.position.left_percent,
            )
            for m in view.markers
        ],
        location_error=view.location_error,
        is_fallback_location=view.is_fallback_location,
    )


@map_router.get(
    "",
    response_model=MapViewResponse,
)
async def get_map(
    resolver: Annotated[NearbyCodeResolver, Depends(get_resolver)],
    settings: Annotated[Settings, Depends(get_settings)],
    lat: float | None = Query(None, ge=-90, le=90, description="Device latitude"),  # noqa: B008
    lng: float | None = Query(None, ge=-180, le=180, description="Device longitude"),  # noqa: B008
    radius: float | None = Query(None, gt=0, le=50_000, description="Search radius in meters"),  # noqa: B008
) -> MapViewResponse:
    """Build the map around the device position.

    Without coordinates the configured fallback center is used and the
    response carries a ``location_error`` message.
    """
    view = await build_map_view(
        resolver,
        StaticLocationProvider(lat, lng),
        fallback=Position(settings.fallback_latitude, settings.fallback_longitude),
        radius_meters=radius or settings.search_radius_meters,
        span_degrees=settings.map_span_degrees,
    )
    return map_view_response(view)
