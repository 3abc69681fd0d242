from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

_configured = False
_logging_configured = False

# attributes every LogRecord carries; anything else came in through ``extra=``
_RESERVED_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class KeyValueFormatter(logging.Formatter):
    """Appends the structured ``extra`` fields of a record as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s %(levelname)s %(name)s %(message)s")

    @staticmethod
    def extra_fields(record: logging.LogRecord) -> dict[str, object]:
        return {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_RECORD_FIELDS and not key.startswith("_")
        }

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = self.extra_fields(record)
        if not fields:
            return line
        rendered = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return f"{line} {rendered}"


def configure_logging(level: str = "INFO") -> None:
    global _logging_configured
    root = logging.getLogger()
    root.setLevel(level)
    if _logging_configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(KeyValueFormatter())
    root.addHandler(handler)
    _logging_configured = True


def configure_otel(service_name: str) -> None:
    global _configured
    if _configured:
        return
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    trace.set_tracer_provider(provider)
    _configured = True
