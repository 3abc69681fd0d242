from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from devkit.config import SyncSettings
from geo_engine.models import GeoPoint, Viewport
from geo_engine.radius import RadiusPolicy, center_and_radius

from resource_sync.debounce import ViewportDebouncer
from resource_sync.dedup import DEFAULT_EPSILON_DEGREES, dedupe
from resource_sync.events import (
    ErrorDismissed,
    FilterToggled,
    PointClicked,
    SyncCleared,
    SyncEvent,
    SyncRequested,
    ViewportChanged,
)
from resource_sync.exceptions import LimitExceededError, ProviderError
from resource_sync.filters import FilterSet, default_filters, toggle, visible
from resource_sync.gateway import ProviderGateway
from resource_sync.limiter import DEFAULT_ENTITY_LIMIT, EntityLimiter
from resource_sync.markers import MarkerRole, MarkerStyleCache
from resource_sync.metrics import InMemorySyncMetricsCollector
from resource_sync.models import (
    Error,
    Idle,
    Loading,
    Ready,
    RenderablePoint,
    Resource,
    ResourceType,
    SyncState,
)

logger = logging.getLogger(__name__)

VisibleListener = Callable[[list[Resource]], None]


class TriggerMode(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


@dataclass(frozen=True)
class ControllerConfig:
    mode: TriggerMode = TriggerMode.MANUAL
    entity_limit: int = DEFAULT_ENTITY_LIMIT
    debounce_seconds: float = 0.3
    radius_policy: RadiusPolicy = field(default_factory=RadiusPolicy)
    wide_area_min_km: float = 5.0
    dedup_epsilon: float = DEFAULT_EPSILON_DEGREES
    point_radius_miles: float = 1.0
    point_radius_km: float = 1.6
    # None issues a single "all" request instead of one request per type
    live_types: tuple[ResourceType, ...] | None = tuple(ResourceType)
    cold_start_catalog: bool = False

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> ControllerConfig:
        return cls(
            mode=TriggerMode(settings.TRIGGER_MODE),
            entity_limit=settings.ENTITY_LIMIT,
            debounce_seconds=settings.debounce_seconds,
            radius_policy=RadiusPolicy(min_km=settings.MIN_RADIUS_KM, max_km=settings.MAX_RADIUS_KM),
            wide_area_min_km=settings.WIDE_AREA_MIN_RADIUS_KM,
            dedup_epsilon=settings.DEDUP_EPSILON_DEGREES,
            point_radius_miles=settings.POINT_RADIUS_MILES,
            point_radius_km=settings.POINT_RADIUS_KM,
            cold_start_catalog=settings.COLD_START_CATALOG,
        )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncController:
    """Single owner of the fetched resource sets and the filter set.

    Events from the map surface are queued with :meth:`publish` and consumed
    one at a time by :meth:`run`. Fetches run as tasks so that later events
    (a viewport move, a clear) can supersede them; every fetch carries a
    sequence number and only the latest one per state slice may write its
    result. The viewport slice and the click-analysis slice never share
    results.
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        config: ControllerConfig | None = None,
        filters: FilterSet | None = None,
        metrics: InMemorySyncMetricsCollector | None = None,
        clock: Callable[[], datetime] = _utc_now,
        sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._config = config or ControllerConfig()
        self._filters: dict[ResourceType, bool] = dict(filters) if filters is not None else default_filters()
        self._metrics = metrics
        self._clock = clock
        self._limiter = EntityLimiter(self._config.entity_limit)
        self._markers = MarkerStyleCache()
        self._debouncer: ViewportDebouncer[Viewport] = ViewportDebouncer(
            self._on_viewport_settled,
            window_seconds=self._config.debounce_seconds,
            sleep_fn=sleep_fn,
        )
        self._events: asyncio.Queue[SyncEvent | None] = asyncio.Queue()
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[VisibleListener] = []
        self._point_listeners: list[VisibleListener] = []

        self._state: SyncState = Idle()
        self._settled: SyncState = Idle()
        self._sequence = 0
        self._point_state: SyncState = Idle()
        self._point_sequence = 0
        self._point_center: GeoPoint | None = None
        self._viewport: Viewport | None = None
        self._error: str | None = None
        self._closed = False

    @property
    def mode(self) -> TriggerMode:
        return self._config.mode

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def point_state(self) -> SyncState:
        return self._point_state

    @property
    def point_center(self) -> GeoPoint | None:
        return self._point_center

    @property
    def viewport(self) -> Viewport | None:
        return self._viewport

    @property
    def filters(self) -> dict[ResourceType, bool]:
        return dict(self._filters)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def visible_resources(self) -> list[Resource]:
        if isinstance(self._state, Ready):
            return visible(self._state.resources, self._filters)
        return []

    @property
    def visible_point_resources(self) -> list[Resource]:
        if isinstance(self._point_state, Ready):
            return visible(self._point_state.resources, self._filters)
        return []

    def add_listener(self, listener: VisibleListener) -> None:
        self._listeners.append(listener)

    def add_point_listener(self, listener: VisibleListener) -> None:
        self._point_listeners.append(listener)

    def renderable_points(self) -> list[RenderablePoint]:
        points = [
            RenderablePoint(resource=resource, style=self._markers.style_for(resource.type))
            for resource in self.visible_resources
        ]
        points.extend(
            RenderablePoint(
                resource=resource,
                style=self._markers.style_for(resource.type, MarkerRole.POINT_ANALYSIS),
                highlighted=True,
            )
            for resource in self.visible_point_resources
        )
        return points

    # event channel

    def publish(self, event: SyncEvent) -> None:
        if self._closed:
            return
        self._events.put_nowait(event)

    async def run(self) -> None:
        if self._config.cold_start_catalog:
            await self.load_catalog()
        while True:
            event = await self._events.get()
            if event is None:
                break
            await self.dispatch(event)

    async def dispatch(self, event: SyncEvent) -> None:
        if isinstance(event, ViewportChanged):
            self._on_viewport_changed(event.viewport)
        elif isinstance(event, PointClicked):
            self._spawn(self.analyze_point(event.point))
        elif isinstance(event, FilterToggled):
            self.toggle_filter(event.resource_type)
        elif isinstance(event, SyncRequested):
            self._spawn(self.request_sync(wide_area=event.wide_area))
        elif isinstance(event, SyncCleared):
            self.clear()
        elif isinstance(event, ErrorDismissed):
            self.dismiss_error()
        else:
            raise TypeError(f"unsupported event: {event!r}")

    async def wait_for_pending(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        self._closed = True
        self._debouncer.close()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._events.put_nowait(None)

    # viewport slice

    async def request_sync(self, wide_area: bool = False, viewport: Viewport | None = None) -> None:
        if isinstance(self._state, Loading):
            logger.info("sync_request_ignored", extra={"reason": "already_loading"})
            return
        target = viewport or self._viewport
        if target is None:
            logger.info("sync_request_ignored", extra={"reason": "no_viewport"})
            return
        await self.synchronize(target, wide_area=wide_area)

    async def synchronize(self, viewport: Viewport, wide_area: bool = False) -> None:
        self._sequence += 1
        sequence = self._sequence
        if not isinstance(self._state, Loading):
            self._settled = _settled_or_idle(self._state)
        self._error = None
        self._set_state(Loading())

        policy = self._config.radius_policy
        if wide_area:
            policy = policy.widened(self._config.wide_area_min_km)
        area = center_and_radius(viewport, policy)
        logger.info(
            "sync_started",
            extra={
                "sequence": sequence,
                "lat": area.center.lat,
                "lon": area.center.lng,
                "radius_km": round(area.radius_km, 3),
                "wide_area": wide_area,
            },
        )

        try:
            raw = await self._gateway.fetch(area.center, area.radius_km, self._config.live_types)
        except ProviderError as exc:
            if self._is_stale(sequence):
                return
            self._fail(exc.message)
            self._count("provider_error")
            return
        if self._is_stale(sequence):
            return

        try:
            self._limiter.check(raw)
        except LimitExceededError as exc:
            self._error = str(exc)
            self._set_state(self._settled)
            self._count("limit_exceeded")
            return

        resources = self._dedupe(raw)
        self._settled = Ready(resources=tuple(resources), timestamp=self._clock())
        self._set_state(self._settled)
        self._count("ready" if resources else "empty")
        logger.info("sync_completed", extra={"sequence": sequence, "resource_count": len(resources)})

    async def load_catalog(self) -> None:
        self._sequence += 1
        sequence = self._sequence
        self._set_state(Loading())
        try:
            catalog = await self._gateway.fetch_catalog()
        except ProviderError as exc:
            if self._is_stale(sequence):
                return
            self._fail(exc.message)
            return
        if self._is_stale(sequence):
            return
        resources = self._dedupe(catalog)
        self._settled = Ready(resources=tuple(resources), timestamp=self._clock())
        self._set_state(self._settled)
        logger.info("catalog_loaded", extra={"resource_count": len(resources)})

    def invalidate(self) -> None:
        # supersedes any in-flight fetch for the previous viewport
        self._sequence += 1
        self._error = None
        self._settled = Idle()
        self._set_state(Idle())

    # click-analysis slice

    async def analyze_point(self, point: GeoPoint) -> None:
        if isinstance(self._point_state, Loading):
            logger.info("point_analysis_ignored", extra={"reason": "already_loading"})
            return
        self._point_sequence += 1
        sequence = self._point_sequence
        previous = _settled_or_idle(self._point_state)
        self._point_center = point
        self._error = None
        self._set_point_state(Loading())

        try:
            raw = await self._gateway.fetch_point(
                point,
                radius_miles=self._config.point_radius_miles,
                radius_km=self._config.point_radius_km,
            )
        except ProviderError as exc:
            if sequence != self._point_sequence:
                return
            self._error = exc.message
            self._set_point_state(Error(exc.message))
            return
        if sequence != self._point_sequence:
            return

        try:
            self._limiter.check(raw)
        except LimitExceededError as exc:
            self._error = str(exc)
            self._set_point_state(previous)
            return

        resources = self._dedupe(raw)
        logger.info("point_analysis_completed", extra={"resource_count": len(resources)})
        self._set_point_state(Ready(resources=tuple(resources), timestamp=self._clock()))

    # user actions that never fetch

    def toggle_filter(self, resource_type: ResourceType) -> None:
        self._filters = toggle(self._filters, resource_type)
        self._notify()
        self._notify_point()

    def clear(self) -> None:
        self._sequence += 1
        self._point_sequence += 1
        self._settled = Idle()
        self._point_center = None
        self._error = None
        self._set_point_state(Idle())
        self._set_state(Idle())

    def dismiss_error(self) -> None:
        self._error = None

    # internals

    def _on_viewport_changed(self, viewport: Viewport) -> None:
        self._viewport = viewport
        if self._config.mode is TriggerMode.AUTOMATIC:
            self._debouncer.on_viewport_change(viewport)
        else:
            self.invalidate()

    async def _on_viewport_settled(self, viewport: Viewport) -> None:
        self._spawn(self.synchronize(viewport))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_stale(self, sequence: int) -> bool:
        if sequence == self._sequence:
            return False
        logger.info("stale_sync_discarded", extra={"sequence": sequence, "latest_sequence": self._sequence})
        if self._metrics:
            self._metrics.increment_stale_discard()
        return True

    def _fail(self, message: str) -> None:
        self._error = message
        self._set_state(Error(message))

    def _dedupe(self, resources: Iterable[Resource]) -> list[Resource]:
        raw = list(resources)
        unique = dedupe(raw, self._config.dedup_epsilon)
        if self._metrics:
            self._metrics.add_dropped_duplicates(len(raw) - len(unique))
        return unique

    def _count(self, outcome: str) -> None:
        if self._metrics:
            self._metrics.increment_sync(outcome)

    def _set_state(self, state: SyncState) -> None:
        self._state = state
        self._notify()

    def _set_point_state(self, state: SyncState) -> None:
        self._point_state = state
        self._notify_point()

    def _notify(self) -> None:
        current = self.visible_resources
        for listener in self._listeners:
            listener(current)

    def _notify_point(self) -> None:
        current = self.visible_point_resources
        for listener in self._point_listeners:
            listener(current)


def _settled_or_idle(state: SyncState) -> SyncState:
    # a limit rejection restores Ready or Idle, never a stale Error
    return state if isinstance(state, (Ready, Idle)) else Idle()
