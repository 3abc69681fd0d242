from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Union

from geo_engine.models import GeoPoint


class ResourceType(str, Enum):
    LIBRARY = "LIBRARY"
    CLINIC = "CLINIC"
    HOSPITAL = "HOSPITAL"
    PHARMACY = "PHARMACY"
    FOOD_BANK = "FOOD_BANK"
    SOCIAL_FACILITY = "SOCIAL_FACILITY"

    @classmethod
    def parse(cls, value: object) -> ResourceType | None:
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Resource:
    """A community resource as returned by a provider.

    ``id`` is only unique within the provider that produced it. ``type`` is
    ``None`` when the provider sent a type outside :class:`ResourceType`.
    """

    id: str | None
    name: str
    type: ResourceType | None
    address: str
    location: GeoPoint

    @property
    def x(self) -> float:
        return self.location.lng

    @property
    def y(self) -> float:
        return self.location.lat

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value if self.type else None,
            "address": self.address,
            "location": {"x": self.x, "y": self.y},
        }


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Error:
    message: str


@dataclass(frozen=True)
class Ready:
    resources: tuple[Resource, ...]
    timestamp: datetime


SyncState = Union[Idle, Loading, Error, Ready]


@dataclass(frozen=True)
class MarkerStyle:
    color: str
    label: str
    size_px: int = 28


@dataclass(frozen=True)
class RenderablePoint:
    resource: Resource
    style: MarkerStyle
    highlighted: bool = False
