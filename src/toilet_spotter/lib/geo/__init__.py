"""Geospatial math — distance, degree conversion and viewport projection.

Public API:
    - Coordinate: Latitude/longitude pair
    - ViewportPosition: Top/left percentages inside a map viewport
    - distance_meters: Haversine distance between two points
    - meters_to_degrees: Convert a radius in meters to degrees at a latitude
    - project_to_viewport: Map a coordinate into a viewport
"""

from toilet_spotter.lib.geo.distance import (
    EARTH_RADIUS_METERS,
    Coordinate,
    ViewportPosition,
    distance_meters,
    meters_to_degrees,
    project_to_viewport,
)

__all__ = [
    "EARTH_RADIUS_METERS",
    "Coordinate",
    "ViewportPosition",
    "distance_meters",
    "meters_to_degrees",
    "project_to_viewport",
]
