"""Geo engine core package."""

from geo_engine.distance import (
    haversine_distance_km,
    haversine_distance_meters,
    km_to_miles,
    miles_to_meters,
)
from geo_engine.geofence import points_within_radius
from geo_engine.models import GeoPoint, SearchArea, Viewport
from geo_engine.radius import RadiusPolicy, center_and_radius

__all__ = [
    "GeoPoint",
    "RadiusPolicy",
    "SearchArea",
    "Viewport",
    "center_and_radius",
    "haversine_distance_km",
    "haversine_distance_meters",
    "km_to_miles",
    "miles_to_meters",
    "points_within_radius",
]
