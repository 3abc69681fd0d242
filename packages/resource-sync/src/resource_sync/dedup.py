from __future__ import annotations

from collections.abc import Iterable

from resource_sync.models import Resource

DEFAULT_EPSILON_DEGREES = 0.0001


def is_near_duplicate(first: Resource, second: Resource, epsilon: float = DEFAULT_EPSILON_DEGREES) -> bool:
    return (
        first.name == second.name
        and abs(first.location.lat - second.location.lat) < epsilon
        and abs(first.location.lng - second.location.lng) < epsilon
    )


def dedupe(resources: Iterable[Resource], epsilon: float = DEFAULT_EPSILON_DEGREES) -> list[Resource]:
    """Drop near-duplicate records, keeping the first occurrence.

    Records match on the exact name as received (no case or whitespace
    folding) and on both coordinates lying within ``epsilon`` degrees,
    whatever their ids. Quadratic, bounded by the entity limit.
    """
    kept: list[Resource] = []
    for resource in resources:
        if any(is_near_duplicate(existing, resource, epsilon) for existing in kept):
            continue
        kept.append(resource)
    return kept


def collapse_identical(resources: Iterable[Resource]) -> list[Resource]:
    seen: set[Resource] = set()
    unique: list[Resource] = []
    for resource in resources:
        if resource in seen:
            continue
        seen.add(resource)
        unique.append(resource)
    return unique
