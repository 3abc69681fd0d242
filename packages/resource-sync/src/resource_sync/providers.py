from __future__ import annotations

from typing import Protocol

from geo_engine.models import GeoPoint

from resource_sync.models import Resource, ResourceType


class LiveProvider(Protocol):
    async def fetch_live(
        self,
        center: GeoPoint,
        radius_km: float,
        resource_type: ResourceType | None,
    ) -> list[Resource]: ...


class StoredProvider(Protocol):
    async def fetch_nearby(
        self,
        center: GeoPoint,
        distance_miles: float,
        limit: int | None = None,
    ) -> list[Resource]: ...

    async def fetch_catalog(self) -> list[Resource]: ...
