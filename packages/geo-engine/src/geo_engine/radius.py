import math
from dataclasses import dataclass

from geo_engine.distance import haversine_distance_km
from geo_engine.models import SearchArea, Viewport

DEFAULT_MIN_RADIUS_KM = 1.6
DEFAULT_MAX_RADIUS_KM = 5.0
WIDE_AREA_MIN_RADIUS_KM = 5.0


@dataclass(frozen=True)
class RadiusPolicy:
    """Clamp applied to the radius derived from a viewport.

    The raw radius is scaled by ``multiplier`` before being clamped into
    ``[min_km, max_km]``.
    """

    min_km: float = DEFAULT_MIN_RADIUS_KM
    max_km: float = DEFAULT_MAX_RADIUS_KM
    multiplier: float = 1.0

    def __post_init__(self) -> None:
        if self.min_km <= 0:
            raise ValueError("min_km must be > 0")
        if self.min_km > self.max_km:
            raise ValueError("min_km must be <= max_km")
        if self.multiplier <= 0:
            raise ValueError("multiplier must be > 0")

    def clamp(self, radius_km: float) -> float:
        if not math.isfinite(radius_km):
            return self.max_km
        return min(max(radius_km * self.multiplier, self.min_km), self.max_km)

    def widened(self, min_km: float = WIDE_AREA_MIN_RADIUS_KM) -> "RadiusPolicy":
        # doubled radius, raised floor, ceiling doubled with it
        max_km = self.max_km * 2
        return RadiusPolicy(min_km=min(min_km, max_km), max_km=max_km, multiplier=2.0)


def center_and_radius(viewport: Viewport, policy: RadiusPolicy | None = None) -> SearchArea:
    policy = policy or RadiusPolicy()
    center = viewport.center
    raw_km = max(
        haversine_distance_km(center, viewport.north_east),
        haversine_distance_km(center, viewport.south_west),
    )
    return SearchArea(center=center, radius_km=policy.clamp(raw_km))
