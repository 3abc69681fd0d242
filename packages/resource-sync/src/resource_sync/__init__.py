"""Viewport resource synchronization core."""

from resource_sync.controller import ControllerConfig, SyncController, TriggerMode
from resource_sync.dedup import dedupe
from resource_sync.events import (
    ErrorDismissed,
    FilterToggled,
    PointClicked,
    SyncCleared,
    SyncEvent,
    SyncRequested,
    ViewportChanged,
)
from resource_sync.exceptions import (
    LimitExceededError,
    MalformedResponseError,
    ProviderError,
    ProviderTimeoutError,
    ResourceSyncError,
)
from resource_sync.factory import build_gateway, build_sync_controller
from resource_sync.filters import default_filters, toggle, visible
from resource_sync.gateway import ProviderGateway
from resource_sync.limiter import EntityLimiter
from resource_sync.models import Error, Idle, Loading, Ready, Resource, ResourceType, SyncState

__all__ = [
    "ControllerConfig",
    "EntityLimiter",
    "Error",
    "ErrorDismissed",
    "FilterToggled",
    "Idle",
    "LimitExceededError",
    "Loading",
    "MalformedResponseError",
    "PointClicked",
    "ProviderError",
    "ProviderGateway",
    "ProviderTimeoutError",
    "Ready",
    "Resource",
    "ResourceSyncError",
    "ResourceType",
    "SyncCleared",
    "SyncController",
    "SyncEvent",
    "SyncRequested",
    "SyncState",
    "TriggerMode",
    "ViewportChanged",
    "build_gateway",
    "build_sync_controller",
    "dedupe",
    "default_filters",
    "toggle",
    "visible",
]
