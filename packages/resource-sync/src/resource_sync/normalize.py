from __future__ import annotations

import logging
import math
from typing import Any

from geo_engine.models import GeoPoint

from resource_sync.exceptions import MalformedResponseError
from resource_sync.models import Resource, ResourceType

logger = logging.getLogger(__name__)


def parse_resources(payload: Any, provider: str) -> list[Resource]:
    """Turn a provider JSON payload into resources.

    A payload that is not a JSON array is a malformed response. Individual
    records that fail validation are dropped and counted, never the batch.
    """
    if not isinstance(payload, list):
        raise MalformedResponseError(f"{provider} provider returned a non-list payload", provider=provider)

    resources: list[Resource] = []
    rejected: dict[str, int] = {}
    for item in payload:
        reason = _reject_reason(item)
        if reason is not None:
            rejected[reason] = rejected.get(reason, 0) + 1
            continue
        resources.append(_to_resource(item))

    if rejected:
        logger.info(
            "provider_records_dropped",
            extra={"provider": provider, "dropped_count": sum(rejected.values()), "reasons": rejected},
        )
    return resources


def _reject_reason(item: Any) -> str | None:
    if not isinstance(item, dict):
        return "not_an_object"
    if not isinstance(item.get("name"), str) or not item["name"].strip():
        return "missing_name"
    location = item.get("location")
    if not isinstance(location, dict):
        return "missing_location"
    x = _as_float(location.get("x"))
    y = _as_float(location.get("y"))
    if x is None or y is None:
        return "non_numeric_location"
    if not GeoPoint(lat=y, lng=x).is_valid():
        return "location_out_of_range"
    return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    result = float(value)
    return result if math.isfinite(result) else None


def _to_resource(item: dict[str, Any]) -> Resource:
    location = item["location"]
    raw_id = item.get("id")
    address = item.get("address")
    return Resource(
        id=str(raw_id) if raw_id is not None else None,
        name=item["name"],
        type=ResourceType.parse(item.get("type")),
        address=address.strip() if isinstance(address, str) else "",
        location=GeoPoint(lat=float(location["y"]), lng=float(location["x"])),
    )
