from collections.abc import Callable, Iterable
from typing import TypeVar

from geo_engine.distance import haversine_distance_meters
from geo_engine.models import GeoPoint

T = TypeVar("T")


def points_within_radius(
    center: GeoPoint,
    items: Iterable[T],
    radius_meters: float,
    point_of: Callable[[T], GeoPoint],
) -> list[T]:
    """Return the items inside the radius, nearest first.

    Ties keep their input order.
    """
    if radius_meters < 0:
        raise ValueError("radius_meters must be >= 0")
    ranked: list[tuple[float, int, T]] = []
    for index, item in enumerate(items):
        distance = haversine_distance_meters(center, point_of(item))
        if distance <= radius_meters:
            ranked.append((distance, index, item))
    ranked.sort(key=lambda entry: (entry[0], entry[1]))
    return [item for _, _, item in ranked]
