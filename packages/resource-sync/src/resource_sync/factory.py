from __future__ import annotations

from collections.abc import Callable

import httpx
from devkit.config import SyncSettings, load_settings
from devkit.observability import configure_logging, configure_otel

from resource_sync.clients import LiveProviderClient, StoredProviderClient
from resource_sync.controller import ControllerConfig, SyncController
from resource_sync.gateway import ProviderGateway
from resource_sync.metrics import InMemorySyncMetricsCollector


def build_gateway(
    settings: SyncSettings,
    metrics: InMemorySyncMetricsCollector | None = None,
    client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> ProviderGateway:
    live = LiveProviderClient(
        base_url=settings.LIVE_PROVIDER_BASE_URL,
        timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
        client_factory=client_factory,
    )
    stored = StoredProviderClient(
        base_url=settings.STORED_PROVIDER_BASE_URL,
        timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
        client_factory=client_factory,
    )
    return ProviderGateway(
        live=live,
        stored=stored,
        timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
        metrics=metrics,
    )


def build_sync_controller(
    settings: SyncSettings | None = None,
    metrics: InMemorySyncMetricsCollector | None = None,
    client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> SyncController:
    settings = settings or load_settings("resource-sync")
    configure_logging(settings.LOG_LEVEL)
    configure_otel(service_name=settings.SERVICE_NAME)
    metrics = metrics or InMemorySyncMetricsCollector()
    return SyncController(
        gateway=build_gateway(settings, metrics=metrics, client_factory=client_factory),
        config=ControllerConfig.from_settings(settings),
        metrics=metrics,
    )
