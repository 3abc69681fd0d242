from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from time import perf_counter
from typing import TypeVar

from geo_engine.distance import km_to_miles
from geo_engine.models import GeoPoint
from opentelemetry import trace

from resource_sync.dedup import collapse_identical
from resource_sync.exceptions import ProviderError, ProviderTimeoutError
from resource_sync.metrics import InMemorySyncMetricsCollector
from resource_sync.models import Resource, ResourceType
from resource_sync.providers import LiveProvider, StoredProvider

T = TypeVar("T")
logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT_SECONDS = 10.0
POINT_RADIUS_MILES = 1.0
POINT_RADIUS_KM = 1.6


@dataclass(frozen=True)
class LiveTypeOutcome:
    resource_type: ResourceType | None
    resources: list[Resource]
    error: ProviderError | None = None


class ProviderGateway:
    """Queries the live provider and falls back to the stored provider.

    Per-type live requests run concurrently and are all awaited before the
    fallback decision; a failing or timed-out type only empties its own
    share of the result.
    """

    def __init__(
        self,
        live: LiveProvider,
        stored: StoredProvider,
        timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        metrics: InMemorySyncMetricsCollector | None = None,
    ) -> None:
        self._live = live
        self._stored = stored
        self._timeout_seconds = timeout_seconds
        self._metrics = metrics
        self._tracer = trace.get_tracer("resource_sync.gateway")

    async def fetch(
        self,
        center: GeoPoint,
        radius_km: float,
        types: Sequence[ResourceType] | None = None,
    ) -> list[Resource]:
        requested: list[ResourceType | None] = list(dict.fromkeys(types)) if types else [None]
        outcomes = await asyncio.gather(
            *(self._fetch_live_type(center, radius_km, resource_type) for resource_type in requested)
        )
        raw = [resource for outcome in outcomes for resource in outcome.resources]
        merged = collapse_identical(raw)
        logger.info(
            "live_fetch_completed",
            extra={
                "requested_types": len(requested),
                "failed_types": sum(1 for outcome in outcomes if outcome.error),
                "resource_count": len(merged),
                "identical_collapsed": len(raw) - len(merged),
            },
        )
        if merged:
            return merged

        live_error = next((outcome.error for outcome in outcomes if outcome.error), None)
        distance_miles = km_to_miles(radius_km)
        if self._metrics:
            self._metrics.increment_fallback()
        logger.info(
            "stored_fallback_started",
            extra={"lat": center.lat, "lon": center.lng, "distance_miles": round(distance_miles, 3)},
        )
        try:
            return await self._call(
                "stored",
                "resource_sync.stored_fetch",
                lambda: self._stored.fetch_nearby(center, distance_miles),
            )
        except ProviderError as exc:
            preferred = live_error or exc
            raise ProviderError(preferred.message, provider=preferred.provider) from exc

    async def fetch_point(
        self,
        center: GeoPoint,
        radius_miles: float = POINT_RADIUS_MILES,
        radius_km: float = POINT_RADIUS_KM,
    ) -> list[Resource]:
        """Click analysis: stored provider first, live provider when that is empty or down."""
        stored_error: ProviderError | None = None
        try:
            stored = await self._call(
                "stored",
                "resource_sync.stored_fetch",
                lambda: self._stored.fetch_nearby(center, radius_miles),
            )
        except ProviderError as exc:
            stored_error = exc
            stored = []
        if stored:
            return stored

        logger.info("point_live_fallback_started", extra={"lat": center.lat, "lon": center.lng})
        if self._metrics:
            self._metrics.increment_fallback()
        try:
            return await self._call(
                "live",
                "resource_sync.live_fetch",
                lambda: self._live.fetch_live(center, radius_km, None),
            )
        except ProviderError as exc:
            preferred = stored_error or exc
            raise ProviderError(preferred.message, provider=preferred.provider) from exc

    async def fetch_catalog(self) -> list[Resource]:
        return await self._call("stored", "resource_sync.catalog_fetch", self._stored.fetch_catalog)

    async def _fetch_live_type(
        self,
        center: GeoPoint,
        radius_km: float,
        resource_type: ResourceType | None,
    ) -> LiveTypeOutcome:
        try:
            resources = await self._call(
                "live",
                "resource_sync.live_fetch",
                lambda: self._live.fetch_live(center, radius_km, resource_type),
                resource_type=resource_type.value if resource_type else "all",
            )
        except ProviderError as exc:
            return LiveTypeOutcome(resource_type=resource_type, resources=[], error=exc)
        return LiveTypeOutcome(resource_type=resource_type, resources=resources)

    async def _call(
        self,
        provider: str,
        span_name: str,
        operation: Callable[[], Awaitable[T]],
        resource_type: str | None = None,
    ) -> T:
        started = perf_counter()
        with self._tracer.start_as_current_span(span_name) as span:
            span.set_attribute("provider", provider)
            if resource_type:
                span.set_attribute("resource.type", resource_type)
            try:
                result = await asyncio.wait_for(operation(), timeout=self._timeout_seconds)
            except asyncio.TimeoutError as exc:
                error: ProviderError = ProviderTimeoutError(f"{provider} provider timed out", provider=provider)
                self._record_failure(provider, error, resource_type, span)
                raise error from exc
            except ProviderError as exc:
                self._record_failure(provider, exc, resource_type, span)
                raise
            except Exception as exc:
                error = ProviderError(f"{provider} provider failed: {exc}", provider=provider)
                self._record_failure(provider, error, resource_type, span)
                raise error from exc
            span.set_attribute("resource.count", len(result) if isinstance(result, list) else 0)
        if self._metrics:
            self._metrics.observe_stage_duration(f"{provider}_fetch", (perf_counter() - started) * 1000.0)
        return result

    def _record_failure(
        self,
        provider: str,
        error: ProviderError,
        resource_type: str | None,
        span: trace.Span,
    ) -> None:
        span.set_attribute("error", True)
        if self._metrics:
            self._metrics.increment_provider_failure(provider)
        logger.warning(
            "provider_request_failed",
            extra={"provider": provider, "resource_type": resource_type or "all", "error": error.message},
        )
