from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from geo_engine.models import GeoPoint

from resource_sync.exceptions import MalformedResponseError, ProviderError, ProviderTimeoutError
from resource_sync.models import Resource, ResourceType
from resource_sync.normalize import parse_resources


class _ProviderHttpClient:
    provider_name = "unknown"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def _get_resources(self, path: str, params: dict[str, Any] | None = None) -> list[Resource]:
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.get(f"{self._base_url}{path}", params=params)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(
                f"{self.provider_name} provider timed out", provider=self.provider_name
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderError(_upstream_message(exc.response), provider=self.provider_name) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                f"{self.provider_name} provider request failed", provider=self.provider_name
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"{self.provider_name} provider returned invalid JSON", provider=self.provider_name
            ) from exc
        return parse_resources(payload, provider=self.provider_name)


class LiveProviderClient(_ProviderHttpClient):
    provider_name = "live"

    async def fetch_live(
        self,
        center: GeoPoint,
        radius_km: float,
        resource_type: ResourceType | None,
    ) -> list[Resource]:
        params = {
            "lat": center.lat,
            "lon": center.lng,
            "radiusKm": radius_km,
            "type": resource_type.value if resource_type else "all",
        }
        return await self._get_resources("/resources/live", params)


class StoredProviderClient(_ProviderHttpClient):
    provider_name = "stored"

    async def fetch_nearby(
        self,
        center: GeoPoint,
        distance_miles: float,
        limit: int | None = None,
    ) -> list[Resource]:
        params: dict[str, Any] = {"lat": center.lat, "lon": center.lng, "dist": distance_miles}
        if limit is not None:
            params["limit"] = limit
        return await self._get_resources("/resources/nearby", params)

    async def fetch_catalog(self) -> list[Resource]:
        return await self._get_resources("/resources")


def _upstream_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"provider returned HTTP {response.status_code}"
