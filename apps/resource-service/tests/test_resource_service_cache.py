from __future__ import annotations

import pytest
from geo_engine.models import GeoPoint

from resource_service.cache import LiveResultCache
from resource_sync.models import ResourceType

PAYLOAD = [{"id": "node/1", "name": "Central Library"}]


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = LiveResultCache(ttl_seconds=300, clock=clock)
    key = LiveResultCache.key(GeoPoint(lat=32.7767, lng=-96.7970), 2.0, ResourceType.LIBRARY)

    await cache.set(key, PAYLOAD)
    clock.now = 299.0
    assert await cache.get(key) == PAYLOAD

    clock.now = 300.0
    assert await cache.get(key) is None


@pytest.mark.asyncio
async def test_expired_entries_are_swept_on_write_without_being_read() -> None:
    clock = FakeClock()
    cache = LiveResultCache(ttl_seconds=300, clock=clock)

    for index in range(1000):
        clock.now = float(index)
        await cache.set(LiveResultCache.key(GeoPoint(lat=32.0 + index * 0.001, lng=-96.8), 5.0, None), PAYLOAD)

    assert len(cache) == 300


@pytest.mark.asyncio
async def test_oldest_entries_are_dropped_at_capacity() -> None:
    cache = LiveResultCache(ttl_seconds=300, max_entries=2, clock=FakeClock())

    await cache.set("a", PAYLOAD)
    await cache.set("b", PAYLOAD)
    await cache.set("c", PAYLOAD)

    assert len(cache) == 2
    assert await cache.get("a") is None
    assert await cache.get("b") == PAYLOAD
    assert await cache.get("c") == PAYLOAD


@pytest.mark.asyncio
async def test_rewriting_a_key_refreshes_its_expiry() -> None:
    clock = FakeClock()
    cache = LiveResultCache(ttl_seconds=10, clock=clock)

    await cache.set("a", PAYLOAD)
    clock.now = 5.0
    await cache.set("b", PAYLOAD)
    clock.now = 8.0
    await cache.set("a", [])
    clock.now = 12.0
    await cache.set("c", PAYLOAD)

    assert await cache.get("a") == []
    assert await cache.get("b") == PAYLOAD
    assert len(cache) == 3


@pytest.mark.asyncio
async def test_zero_ttl_disables_caching() -> None:
    cache = LiveResultCache(ttl_seconds=0, clock=FakeClock())

    await cache.set("a", PAYLOAD)

    assert len(cache) == 0


def test_key_includes_center_radius_and_type() -> None:
    center = GeoPoint(lat=32.7767, lng=-96.797)

    assert LiveResultCache.key(center, 2.0, ResourceType.LIBRARY) == "live:32.7767:-96.797:2.0:LIBRARY"
    assert LiveResultCache.key(center, 2.0, None) == "live:32.7767:-96.797:2.0:all"


def test_invalid_bounds_are_rejected() -> None:
    with pytest.raises(ValueError):
        LiveResultCache(ttl_seconds=-1)
    with pytest.raises(ValueError):
        LiveResultCache(max_entries=0)
