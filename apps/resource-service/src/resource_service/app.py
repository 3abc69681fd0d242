from __future__ import annotations

import logging
import time

from devkit.config import SyncSettings, load_settings
from devkit.observability import configure_logging, configure_otel
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from geo_engine.models import GeoPoint
from resource_sync.models import ResourceType

from resource_service.cache import LiveResultCache
from resource_service.catalog import ResourceCatalog
from resource_service.circuit_breaker import CircuitBreaker, CircuitOpenError
from resource_service.errors import OverpassError, OverpassTimeoutError
from resource_service.middleware import ObservabilityMiddleware
from resource_service.observability import ServiceMetrics
from resource_service.overpass import OverpassClient
from resource_service.schemas import ResourceOut

logger = logging.getLogger(__name__)

TYPE_ALIASES: dict[str, ResourceType] = {
    "HEALTHCARE": ResourceType.CLINIC,
    "FOOD": ResourceType.FOOD_BANK,
    "SOCIAL": ResourceType.SOCIAL_FACILITY,
}


def resolve_live_type(raw: str | None) -> ResourceType | None:
    """``None``, blank and ``all`` mean every type; unknown names are rejected with 422."""
    if raw is None or not raw.strip() or raw.strip().lower() == "all":
        return None
    name = raw.strip().upper()
    resolved = TYPE_ALIASES.get(name) or ResourceType.parse(name)
    if resolved is None:
        raise HTTPException(status_code=422, detail=f"unsupported resource type: {raw}")
    return resolved


def create_app(
    settings: SyncSettings | None = None,
    catalog: ResourceCatalog | None = None,
    overpass: OverpassClient | None = None,
    cache: LiveResultCache | None = None,
) -> FastAPI:
    settings = settings or load_settings("resource-service")
    configure_logging(settings.LOG_LEVEL)
    configure_otel(service_name=settings.SERVICE_NAME)

    app = FastAPI(title="Community Resource Service", version="0.1.0")
    app.state.metrics = ServiceMetrics()
    app.add_middleware(ObservabilityMiddleware, metrics=app.state.metrics)

    catalog = catalog or ResourceCatalog()
    overpass = overpass or OverpassClient(
        api_url=settings.OVERPASS_API_URL,
        timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
        breaker=CircuitBreaker("overpass", failure_threshold=3, recovery_timeout_seconds=30),
    )
    cache = cache or LiveResultCache(
        ttl_seconds=settings.LIVE_CACHE_TTL_SECONDS,
        max_entries=settings.LIVE_CACHE_MAX_ENTRIES,
    )

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/readyz")
    async def readyz() -> dict[str, str]:
        if overpass.breaker.is_open(time.monotonic()):
            return {"status": "degraded"}
        return {"status": "ready"}

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=app.state.metrics.render(), media_type="text/plain; version=0.0.4")

    @app.get("/resources", response_model=list[ResourceOut])
    async def list_resources() -> list[dict]:
        return [resource.to_payload() for resource in await catalog.list_all()]

    @app.get("/resources/nearby", response_model=list[ResourceOut])
    async def nearby_resources(
        lat: float = Query(ge=-90, le=90),
        lon: float = Query(ge=-180, le=180),
        dist: float = Query(default=1.0, gt=0, le=100),
        limit: int | None = Query(default=None, ge=1, le=500),
    ) -> list[dict]:
        found = await catalog.nearby(GeoPoint(lat=lat, lng=lon), dist, limit=limit)
        logger.info("nearby_lookup", extra={"lat": lat, "lon": lon, "dist": dist, "resource_count": len(found)})
        return [resource.to_payload() for resource in found]

    @app.get("/resources/live", response_model=list[ResourceOut])
    async def live_resources(
        lat: float = Query(ge=-90, le=90),
        lon: float = Query(ge=-180, le=180),
        radius_km: float = Query(default=5.0, alias="radiusKm", gt=0, le=50),
        resource_type: str | None = Query(default=None, alias="type"),
    ) -> list[dict]:
        requested = resolve_live_type(resource_type)
        center = GeoPoint(lat=lat, lng=lon)
        key = LiveResultCache.key(center, radius_km, requested)
        cached = await cache.get(key)
        if cached is not None:
            app.state.metrics.observe_cache_hit()
            return cached

        try:
            found = await overpass.fetch(center, radius_km, requested)
        except CircuitOpenError as exc:
            app.state.metrics.observe_upstream_error("circuit_open")
            raise HTTPException(status_code=503, detail="live provider temporarily unavailable") from exc
        except OverpassTimeoutError as exc:
            app.state.metrics.observe_upstream_error("timeout")
            raise HTTPException(status_code=504, detail=str(exc)) from exc
        except OverpassError as exc:
            app.state.metrics.observe_upstream_error("upstream")
            raise HTTPException(status_code=502, detail=str(exc)) from exc

        payload = [resource.to_payload() for resource in found]
        await cache.set(key, payload)
        return payload

    return app


app = create_app()
