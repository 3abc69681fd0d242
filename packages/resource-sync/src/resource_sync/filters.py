from __future__ import annotations

from collections.abc import Iterable, Mapping

from resource_sync.models import Resource, ResourceType

FilterSet = Mapping[ResourceType, bool]


def default_filters(enabled: Iterable[ResourceType] | None = None) -> dict[ResourceType, bool]:
    """All types enabled, or only the given subset."""
    if enabled is None:
        return {resource_type: True for resource_type in ResourceType}
    chosen = set(enabled)
    return {resource_type: resource_type in chosen for resource_type in ResourceType}


def toggle(filters: FilterSet, resource_type: ResourceType) -> dict[ResourceType, bool]:
    updated = dict(filters)
    updated[resource_type] = not filters.get(resource_type, False)
    return updated


def visible(resources: Iterable[Resource], filters: FilterSet) -> list[Resource]:
    return [
        resource
        for resource in resources
        if resource.type is not None and filters.get(resource.type) is True
    ]
