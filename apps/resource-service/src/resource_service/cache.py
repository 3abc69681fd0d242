from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from geo_engine.models import GeoPoint
from resource_sync.models import ResourceType


class LiveResultCache:
    """TTL cache for live lookups, keyed by query center, radius and type.

    Expired entries are swept on every write and the oldest entries are
    dropped once ``max_entries`` is reached.
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._items: OrderedDict[str, tuple[float, list[dict[str, Any]]]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    @staticmethod
    def key(center: GeoPoint, radius_km: float, resource_type: ResourceType | None) -> str:
        type_key = resource_type.value if resource_type else "all"
        return f"live:{center.lat}:{center.lng}:{radius_km}:{type_key}"

    async def get(self, key: str) -> list[dict[str, Any]] | None:
        item = self._items.get(key)
        if not item:
            return None
        expires_at, value = item
        if expires_at <= self._clock():
            self._items.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: list[dict[str, Any]]) -> None:
        if self._ttl_seconds == 0:
            return
        now = self._clock()
        self._evict_expired(now)
        self._items.pop(key, None)
        while len(self._items) >= self._max_entries:
            self._items.popitem(last=False)
        self._items[key] = (now + self._ttl_seconds, value)

    def _evict_expired(self, now: float) -> None:
        # insertion order is expiry order because the TTL is fixed
        while self._items:
            oldest = next(iter(self._items))
            if self._items[oldest][0] > now:
                break
            self._items.popitem(last=False)
