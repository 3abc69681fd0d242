from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from geo_engine.models import GeoPoint, Viewport

from resource_sync.models import ResourceType


@dataclass(frozen=True)
class ViewportChanged:
    viewport: Viewport


@dataclass(frozen=True)
class PointClicked:
    point: GeoPoint


@dataclass(frozen=True)
class FilterToggled:
    resource_type: ResourceType


@dataclass(frozen=True)
class SyncRequested:
    wide_area: bool = False


@dataclass(frozen=True)
class SyncCleared:
    pass


@dataclass(frozen=True)
class ErrorDismissed:
    pass


SyncEvent = Union[ViewportChanged, PointClicked, FilterToggled, SyncRequested, SyncCleared, ErrorDismissed]
