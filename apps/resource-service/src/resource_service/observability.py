from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


@dataclass(frozen=True)
class RequestMetric:
    method: str
    path: str
    status_code: int
    duration_ms: float
    trace_id: str


class ServiceMetrics:
    """Request and upstream metrics, kept both as a bounded window of recent
    requests and as Prometheus series on a private registry."""

    def __init__(self, recent_size: int = 256) -> None:
        self._recent: deque[RequestMetric] = deque(maxlen=recent_size)
        self._registry = CollectorRegistry()
        self._request_counter = Counter(
            "resource_service_http_requests_total",
            "Total resource service HTTP requests",
            labelnames=("method", "path", "status_code"),
            registry=self._registry,
        )
        self._latency_histogram = Histogram(
            "resource_service_http_request_duration_ms",
            "Resource service HTTP request latency in milliseconds",
            labelnames=("method", "path"),
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 3000, 10000),
            registry=self._registry,
        )
        self._upstream_errors = Counter(
            "resource_service_upstream_errors_total",
            "Overpass upstream failures by kind",
            labelnames=("kind",),
            registry=self._registry,
        )
        self._cache_hits = Counter(
            "resource_service_live_cache_hits_total",
            "Live lookups answered from the TTL cache",
            registry=self._registry,
        )

    def observe(self, metric: RequestMetric) -> None:
        self._recent.append(metric)
        self._request_counter.labels(metric.method, metric.path, str(metric.status_code)).inc()
        self._latency_histogram.labels(metric.method, metric.path).observe(metric.duration_ms)

    def observe_upstream_error(self, kind: str) -> None:
        self._upstream_errors.labels(kind).inc()

    def observe_cache_hit(self) -> None:
        self._cache_hits.inc()

    def snapshot(self) -> list[dict]:
        return [asdict(item) for item in self._recent]

    def render(self) -> str:
        return generate_latest(self._registry).decode("utf-8")
