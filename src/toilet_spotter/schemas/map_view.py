"""Pydantic v2 schemas for the map screen."""

from pydantic import BaseModel, Field

from toilet_spotter.schemas.access_code import AccessCodeResponse


class CoordinateResponse(BaseModel):
    """A latitude/longitude pair."""

    model_config = {"from_attributes": True}

    latitude: float
    longitude: float


class BoundingBoxResponse(BaseModel):
    """Viewport bounds in degrees."""

    model_config = {"from_attributes": True}

    min_longitude: float
    min_latitude: float
    max_longitude: float
    max_latitude: float


class MapMarkerResponse(BaseModel):
    """A code positioned on the viewport."""

    code: AccessCodeResponse
    top_percent: float = Field(description="Offset from the top edge, 0-100")
    left_percent: float = Field(description="Offset from the left edge, 0-100")


class MapViewResponse(BaseModel):
    """Map screen payload."""

    center: CoordinateResponse
    span_degrees: float
    bbox: BoundingBoxResponse
    embed_url: str
    markers: list[MapMarkerResponse]
    location_error: str | None = None
    is_fallback_location: bool = False
