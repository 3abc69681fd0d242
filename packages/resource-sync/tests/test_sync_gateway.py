from __future__ import annotations

import asyncio

import pytest
from geo_engine.models import GeoPoint

from resource_sync.exceptions import ProviderError
from resource_sync.gateway import ProviderGateway
from resource_sync.metrics import InMemorySyncMetricsCollector
from resource_sync.models import Resource, ResourceType

DALLAS = GeoPoint(lat=32.7767, lng=-96.7970)


def _resource(name: str, resource_type: ResourceType = ResourceType.LIBRARY, offset: float = 0.0) -> Resource:
    return Resource(
        id=name.lower().replace(" ", "-"),
        name=name,
        type=resource_type,
        address="Dallas, TX",
        location=GeoPoint(lat=32.7767 + offset, lng=-96.7970 + offset),
    )


class StubLive:
    def __init__(self, results=None, failures=None, delays=None) -> None:
        self.results: dict = results or {}
        self.failures: dict = failures or {}
        self.delays: dict = delays or {}
        self.calls: list[tuple[GeoPoint, float, ResourceType | None]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_live(self, center, radius_km, resource_type):
        self.calls.append((center, radius_km, resource_type))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(resource_type, 0.01))
            if resource_type in self.failures:
                raise self.failures[resource_type]
            return list(self.results.get(resource_type, []))
        finally:
            self.in_flight -= 1


class StubStored:
    def __init__(self, nearby=None, error: Exception | None = None, catalog=None) -> None:
        self.nearby = nearby or []
        self.error = error
        self.catalog = catalog or []
        self.calls: list[tuple[GeoPoint, float, int | None]] = []

    async def fetch_nearby(self, center, distance_miles, limit=None):
        self.calls.append((center, distance_miles, limit))
        if self.error:
            raise self.error
        return list(self.nearby)

    async def fetch_catalog(self):
        return list(self.catalog)


@pytest.mark.asyncio
async def test_falls_back_to_stored_when_live_is_empty_for_all_types() -> None:
    stored_resources = [_resource("Library A"), _resource("Clinic B", ResourceType.CLINIC, 0.001), _resource("Bank C", ResourceType.FOOD_BANK, 0.002)]
    live = StubLive()
    stored = StubStored(nearby=stored_resources)
    metrics = InMemorySyncMetricsCollector()
    gateway = ProviderGateway(live=live, stored=stored, metrics=metrics)

    result = await gateway.fetch(DALLAS, 2.0, list(ResourceType))

    assert result == stored_resources
    assert len(live.calls) == 6
    assert {call[2] for call in live.calls} == set(ResourceType)
    assert all(call[1] == 2.0 for call in live.calls)
    assert len(stored.calls) == 1
    assert stored.calls[0][1] == pytest.approx(1.242742)
    assert metrics.fallback_count == 1


@pytest.mark.asyncio
async def test_per_type_requests_run_concurrently() -> None:
    live = StubLive(results={ResourceType.LIBRARY: [_resource("Library A")]})
    gateway = ProviderGateway(live=live, stored=StubStored())

    await gateway.fetch(DALLAS, 2.0, list(ResourceType))

    assert live.max_in_flight == 6


@pytest.mark.asyncio
async def test_single_all_request_when_no_types_given() -> None:
    live = StubLive(results={None: [_resource("Library A")]})
    gateway = ProviderGateway(live=live, stored=StubStored())

    result = await gateway.fetch(DALLAS, 2.0)

    assert [call[2] for call in live.calls] == [None]
    assert len(result) == 1


@pytest.mark.asyncio
async def test_partial_live_failure_keeps_other_types() -> None:
    live = StubLive(
        results={ResourceType.LIBRARY: [_resource("Library A")], ResourceType.CLINIC: [_resource("Clinic B", ResourceType.CLINIC, 0.01)]},
        failures={ResourceType.HOSPITAL: ProviderError("hospital query failed", provider="live")},
    )
    stored = StubStored()
    metrics = InMemorySyncMetricsCollector()
    gateway = ProviderGateway(live=live, stored=stored, metrics=metrics)

    result = await gateway.fetch(DALLAS, 2.0, [ResourceType.LIBRARY, ResourceType.HOSPITAL, ResourceType.CLINIC])

    assert [resource.name for resource in result] == ["Library A", "Clinic B"]
    assert stored.calls == []
    assert metrics.provider_failure_total["live"] == 1


@pytest.mark.asyncio
async def test_unexpected_live_exception_is_isolated_to_its_type() -> None:
    live = StubLive(
        results={ResourceType.LIBRARY: [_resource("Library A")]},
        failures={ResourceType.CLINIC: RuntimeError("socket closed")},
    )
    gateway = ProviderGateway(live=live, stored=StubStored())

    result = await gateway.fetch(DALLAS, 2.0, [ResourceType.LIBRARY, ResourceType.CLINIC])

    assert [resource.name for resource in result] == ["Library A"]


@pytest.mark.asyncio
async def test_timed_out_type_fails_alone() -> None:
    live = StubLive(
        results={ResourceType.LIBRARY: [_resource("Library A")], ResourceType.PHARMACY: [_resource("Late Pharmacy", ResourceType.PHARMACY, 0.01)]},
        delays={ResourceType.PHARMACY: 5.0},
    )
    gateway = ProviderGateway(live=live, stored=StubStored(), timeout_seconds=0.1)

    result = await gateway.fetch(DALLAS, 2.0, [ResourceType.LIBRARY, ResourceType.PHARMACY])

    assert [resource.name for resource in result] == ["Library A"]


@pytest.mark.asyncio
async def test_identical_records_from_overlapping_types_are_collapsed() -> None:
    shared = _resource("Community Health Hub", ResourceType.CLINIC)
    live = StubLive(results={ResourceType.CLINIC: [shared], ResourceType.HOSPITAL: [shared]})
    gateway = ProviderGateway(live=live, stored=StubStored())

    result = await gateway.fetch(DALLAS, 2.0, [ResourceType.CLINIC, ResourceType.HOSPITAL])

    assert result == [shared]


@pytest.mark.asyncio
async def test_all_live_failed_and_stored_failed_prefers_live_message() -> None:
    live = StubLive(failures={None: ProviderError("live provider timed out", provider="live")})
    stored = StubStored(error=ProviderError("stored provider request failed", provider="stored"))
    gateway = ProviderGateway(live=live, stored=stored)

    with pytest.raises(ProviderError) as exc_info:
        await gateway.fetch(DALLAS, 2.0)

    assert exc_info.value.message == "live provider timed out"
    assert exc_info.value.provider == "live"


@pytest.mark.asyncio
async def test_live_empty_and_stored_failed_uses_stored_message() -> None:
    stored = StubStored(error=ProviderError("stored provider request failed", provider="stored"))
    gateway = ProviderGateway(live=StubLive(), stored=stored)

    with pytest.raises(ProviderError) as exc_info:
        await gateway.fetch(DALLAS, 2.0, list(ResourceType))

    assert exc_info.value.message == "stored provider request failed"


@pytest.mark.asyncio
async def test_all_live_failed_and_stored_ok_returns_stored() -> None:
    live = StubLive(failures={None: ProviderError("live down", provider="live")})
    stored = StubStored(nearby=[_resource("Library A")])
    gateway = ProviderGateway(live=live, stored=stored)

    result = await gateway.fetch(DALLAS, 3.0)

    assert [resource.name for resource in result] == ["Library A"]


@pytest.mark.asyncio
async def test_both_empty_is_an_empty_result_not_an_error() -> None:
    gateway = ProviderGateway(live=StubLive(), stored=StubStored())
    assert await gateway.fetch(DALLAS, 2.0) == []


@pytest.mark.asyncio
async def test_fetch_point_prefers_stored_provider() -> None:
    live = StubLive(results={None: [_resource("Live Library")]})
    stored = StubStored(nearby=[_resource("Stored Library")])
    gateway = ProviderGateway(live=live, stored=stored)

    result = await gateway.fetch_point(DALLAS)

    assert [resource.name for resource in result] == ["Stored Library"]
    assert stored.calls[0][1] == 1.0
    assert live.calls == []


@pytest.mark.asyncio
async def test_fetch_point_falls_back_to_live_all_types() -> None:
    live = StubLive(results={None: [_resource("Live Library")]})
    gateway = ProviderGateway(live=live, stored=StubStored())

    result = await gateway.fetch_point(DALLAS)

    assert [resource.name for resource in result] == ["Live Library"]
    assert live.calls == [(DALLAS, 1.6, None)]


@pytest.mark.asyncio
async def test_fetch_point_both_failed_prefers_stored_message() -> None:
    live = StubLive(failures={None: ProviderError("live down", provider="live")})
    stored = StubStored(error=ProviderError("stored down", provider="stored"))
    gateway = ProviderGateway(live=live, stored=stored)

    with pytest.raises(ProviderError) as exc_info:
        await gateway.fetch_point(DALLAS)

    assert exc_info.value.message == "stored down"


@pytest.mark.asyncio
async def test_fetch_catalog_reads_stored_catalog() -> None:
    gateway = ProviderGateway(live=StubLive(), stored=StubStored(catalog=[_resource("Library A")]))
    assert len(await gateway.fetch_catalog()) == 1
