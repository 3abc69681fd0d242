from __future__ import annotations

from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    SERVICE_NAME: str = "resource-sync"
    LOG_LEVEL: str = "INFO"

    LIVE_PROVIDER_BASE_URL: str = "http://localhost:8110"
    STORED_PROVIDER_BASE_URL: str = "http://localhost:8110"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    ENTITY_LIMIT: int = 50
    DEBOUNCE_MS: int = 300
    MIN_RADIUS_KM: float = 1.6
    MAX_RADIUS_KM: float = 5.0
    WIDE_AREA_MIN_RADIUS_KM: float = 5.0
    DEDUP_EPSILON_DEGREES: float = 0.0001
    POINT_RADIUS_MILES: float = 1.0
    POINT_RADIUS_KM: float = 1.6

    TRIGGER_MODE: Literal["manual", "automatic"] = "manual"
    COLD_START_CATALOG: bool = False

    OVERPASS_API_URL: str = "https://overpass-api.de/api/interpreter"
    LIVE_CACHE_TTL_SECONDS: int = 300
    LIVE_CACHE_MAX_ENTRIES: int = 1024

    @field_validator("ENTITY_LIMIT", "DEBOUNCE_MS", "LIVE_CACHE_TTL_SECONDS")
    @classmethod
    def _non_negative_int(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("LIVE_CACHE_MAX_ENTRIES")
    @classmethod
    def _positive_int(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value

    @field_validator("PROVIDER_TIMEOUT_SECONDS", "DEDUP_EPSILON_DEGREES", "POINT_RADIUS_MILES", "POINT_RADIUS_KM")
    @classmethod
    def _positive_float(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def _check_radius_clamp(self) -> "SyncSettings":
        if self.MIN_RADIUS_KM <= 0:
            raise ValueError("MIN_RADIUS_KM must be > 0")
        if self.MIN_RADIUS_KM > self.MAX_RADIUS_KM:
            raise ValueError("MIN_RADIUS_KM must be <= MAX_RADIUS_KM")
        return self

    @property
    def debounce_seconds(self) -> float:
        return self.DEBOUNCE_MS / 1000


def load_settings(service_name: str) -> SyncSettings:
    return SyncSettings(SERVICE_NAME=service_name)
