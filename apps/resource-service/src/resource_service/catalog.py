from __future__ import annotations

from collections.abc import Iterable

from geo_engine.distance import miles_to_meters
from geo_engine.geofence import points_within_radius
from geo_engine.models import GeoPoint
from resource_sync.models import Resource, ResourceType


def _seed(resource_id: str, name: str, resource_type: ResourceType, address: str, lng: float, lat: float) -> Resource:
    return Resource(
        id=resource_id,
        name=name,
        type=resource_type,
        address=address,
        location=GeoPoint(lat=lat, lng=lng),
    )


DALLAS_SEED: tuple[Resource, ...] = (
    _seed("1", "Central City Library", ResourceType.LIBRARY, "1515 Young St, Dallas, TX 75201", -96.7970, 32.7767),
    _seed("2", "Oak Lawn Branch Library", ResourceType.LIBRARY, "4100 Cedar Springs Rd, Dallas, TX 75219", -96.8000, 32.8000),
    _seed("3", "Parkland Health Center", ResourceType.CLINIC, "5200 Harry Hines Blvd, Dallas, TX 75235", -96.8500, 32.8200),
    _seed("4", "Baylor Scott & White Medical Center", ResourceType.CLINIC, "3500 Gaston Ave, Dallas, TX 75246", -96.7800, 32.7900),
    _seed("5", "North Texas Food Bank", ResourceType.FOOD_BANK, "4500 S Cockrell Hill Rd, Dallas, TX 75236", -96.8500, 32.7500),
    _seed("6", "Crossroads Community Services", ResourceType.FOOD_BANK, "4500 S Lancaster Rd, Dallas, TX 75216", -96.7500, 32.7500),
    _seed("7", "Highland Park Library", ResourceType.LIBRARY, "4700 Drexel Dr, Highland Park, TX 75205", -96.8000, 32.8200),
    _seed("8", "Children's Medical Center Dallas", ResourceType.CLINIC, "1935 Medical District Dr, Dallas, TX 75235", -96.8400, 32.8100),
)


class ResourceCatalog:
    """In-memory stored catalog, seeded with Dallas sample resources."""

    def __init__(self, resources: Iterable[Resource] | None = None) -> None:
        self._items: list[Resource] = list(DALLAS_SEED if resources is None else resources)

    async def list_all(self) -> list[Resource]:
        return list(self._items)

    async def nearby(self, center: GeoPoint, distance_miles: float, limit: int | None = None) -> list[Resource]:
        found = points_within_radius(
            center,
            self._items,
            miles_to_meters(distance_miles),
            point_of=lambda resource: resource.location,
        )
        return found[:limit] if limit is not None else found
