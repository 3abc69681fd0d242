"""Common runtime devkit for configuration and observability concerns."""

from devkit.config import SyncSettings, load_settings
from devkit.observability import KeyValueFormatter, configure_logging, configure_otel

__all__ = [
    "KeyValueFormatter",
    "SyncSettings",
    "configure_logging",
    "configure_otel",
    "load_settings",
]
