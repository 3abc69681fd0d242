from __future__ import annotations

from pydantic import BaseModel


class LocationOut(BaseModel):
    x: float
    y: float


class ResourceOut(BaseModel):
    id: str | None
    name: str
    type: str | None
    address: str
    location: LocationOut
