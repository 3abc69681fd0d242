import math
from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def is_valid(self) -> bool:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            return False
        return -90 <= self.lat <= 90 and -180 <= self.lng <= 180


@dataclass(frozen=True)
class Viewport:
    """Bounding rectangle of the visible map area."""

    north_east: GeoPoint
    south_west: GeoPoint

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(
            lat=(self.north_east.lat + self.south_west.lat) / 2,
            lng=(self.north_east.lng + self.south_west.lng) / 2,
        )


@dataclass(frozen=True)
class SearchArea:
    center: GeoPoint
    radius_km: float
