from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from typing import Any

import httpx
from geo_engine.models import GeoPoint
from resource_sync.models import Resource, ResourceType

from resource_service.circuit_breaker import CircuitBreaker
from resource_service.errors import OverpassError, OverpassTimeoutError

logger = logging.getLogger(__name__)

USER_AGENT = "CommunityMap/1.0"
ADDRESS_NOT_AVAILABLE = "Address not available"

AMENITY_TYPES: dict[str, ResourceType] = {
    "library": ResourceType.LIBRARY,
    "clinic": ResourceType.CLINIC,
    "doctors": ResourceType.CLINIC,
    "hospital": ResourceType.HOSPITAL,
    "pharmacy": ResourceType.PHARMACY,
    "food_bank": ResourceType.FOOD_BANK,
    "social_facility": ResourceType.SOCIAL_FACILITY,
}

AMENITY_NAMES: dict[str, str] = {
    "library": "Public Library",
    "hospital": "Hospital",
    "clinic": "Medical Clinic",
    "doctors": "Doctor's Office",
    "pharmacy": "Pharmacy",
    "food_bank": "Food Bank",
    "social_facility": "Social Services",
}

NAME_TAGS = ("name", "brand", "operator", "ref", "official_name", "alt_name", "short_name")
ADDRESS_TAGS = ("addr:housenumber", "addr:street", "addr:city", "addr:state", "addr:postcode")


def amenities_for(resource_type: ResourceType | None) -> list[str]:
    if resource_type is None:
        return list(AMENITY_TYPES)
    return [amenity for amenity, mapped in AMENITY_TYPES.items() if mapped is resource_type]


def build_query(center: GeoPoint, radius_km: float, resource_type: ResourceType | None = None) -> str:
    pattern = "|".join(amenities_for(resource_type))
    radius_meters = int(radius_km * 1000)
    timeout = 30 if resource_type is None else 25
    selectors = "\n".join(
        f'  {kind}["amenity"~"^({pattern})$"](around:{radius_meters},{center.lat:.6f},{center.lng:.6f});'
        for kind in ("node", "way", "relation")
    )
    return f"[out:json][timeout:{timeout}];\n(\n{selectors}\n);\nout center;\n"


def parse_elements(payload: Any, default_type: ResourceType | None = None) -> list[Resource]:
    """Map an Overpass JSON response to resources.

    Elements without usable coordinates are skipped. Ways and relations
    carry their coordinates in ``center`` (the query asks for ``out center``).
    """
    if not isinstance(payload, dict):
        raise OverpassError("overpass returned an unexpected payload")
    elements = payload.get("elements")
    if not isinstance(elements, list):
        return []

    resources: list[Resource] = []
    skipped = 0
    for element in elements:
        resource = _parse_element(element, default_type)
        if resource is None:
            skipped += 1
            continue
        resources.append(resource)
    if skipped:
        logger.info("overpass_elements_skipped", extra={"skipped_count": skipped})
    return resources


def _parse_element(element: Any, default_type: ResourceType | None) -> Resource | None:
    if not isinstance(element, dict):
        return None
    location = _coordinates(element)
    if location is None:
        return None

    element_id = element.get("id")
    resource_id = f"{element.get('type', 'node')}/{element_id}" if element_id is not None else None
    tags = element.get("tags")
    if not isinstance(tags, dict):
        return Resource(
            id=resource_id,
            name="Community Resource",
            type=default_type,
            address=ADDRESS_NOT_AVAILABLE,
            location=location,
        )

    amenity = tags.get("amenity")
    return Resource(
        id=resource_id,
        name=_name(tags, amenity),
        type=AMENITY_TYPES.get(amenity, default_type) if isinstance(amenity, str) else default_type,
        address=_address(tags),
        location=location,
    )


def _coordinates(element: dict[str, Any]) -> GeoPoint | None:
    source = element
    if not (_is_number(element.get("lat")) and _is_number(element.get("lon"))):
        source = element.get("center")
        if not isinstance(source, dict) or not (_is_number(source.get("lat")) and _is_number(source.get("lon"))):
            return None
    point = GeoPoint(lat=float(source["lat"]), lng=float(source["lon"]))
    return point if point.is_valid() else None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _name(tags: dict[str, Any], amenity: Any) -> str:
    for key in NAME_TAGS:
        value = tags.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    if isinstance(amenity, str):
        return AMENITY_NAMES.get(amenity, "Community Resource")
    return "Community Resource"


def _address(tags: dict[str, Any]) -> str:
    parts = [tags[key].strip() for key in ADDRESS_TAGS if isinstance(tags.get(key), str) and tags[key].strip()]
    if parts:
        return " ".join(parts)
    full = tags.get("addr:full")
    if isinstance(full, str) and full.strip():
        return full.strip()
    return ADDRESS_NOT_AVAILABLE


class OverpassClient:
    def __init__(
        self,
        api_url: str,
        timeout_seconds: float = 25.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
        breaker: CircuitBreaker | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api_url = api_url
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory
        self._breaker = breaker or CircuitBreaker("overpass")
        self._clock = clock

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def fetch(
        self,
        center: GeoPoint,
        radius_km: float,
        resource_type: ResourceType | None = None,
    ) -> list[Resource]:
        query = build_query(center, radius_km, resource_type)
        logger.info(
            "overpass_query_started",
            extra={"resource_type": resource_type.value if resource_type else "all", "radius_km": radius_km},
        )
        payload = await self._breaker.call(lambda: self._post(query), now_seconds=self._clock())
        resources = parse_elements(payload, default_type=resource_type)
        logger.info("overpass_query_completed", extra={"resource_count": len(resources)})
        return resources

    async def _post(self, query: str) -> Any:
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.post(
                    self._api_url,
                    data={"data": query},
                    headers={"User-Agent": USER_AGENT},
                )
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise OverpassTimeoutError("overpass request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise OverpassError(f"overpass returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise OverpassError("overpass request failed") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise OverpassError("overpass returned invalid JSON") from exc
