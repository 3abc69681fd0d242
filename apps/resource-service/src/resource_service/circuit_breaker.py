from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


class CircuitOpenError(Exception):
    """Raised while the upstream is considered down and calls are short-circuited."""


@dataclass
class CircuitBreakerState:
    failure_count: int = 0
    opened_at_seconds: float | None = None


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        recovery_timeout_seconds: float = 30.0,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self._name = name
        self._failure_threshold = failure_threshold
        self._recovery_timeout_seconds = recovery_timeout_seconds
        self._state = CircuitBreakerState()

    def is_open(self, now_seconds: float) -> bool:
        opened_at = self._state.opened_at_seconds
        if opened_at is None:
            return False
        return now_seconds - opened_at < self._recovery_timeout_seconds

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        now_seconds: float,
    ) -> T:
        if self.is_open(now_seconds):
            logger.warning("circuit_open", extra={"component": self._name, "now_seconds": now_seconds})
            raise CircuitOpenError(f"{self._name} circuit is open")
        if self._state.opened_at_seconds is not None:
            # recovery window elapsed; one trial call decides
            self._state.opened_at_seconds = None
            self._state.failure_count = self._failure_threshold - 1
            logger.info("circuit_half_open", extra={"component": self._name})

        try:
            result = await operation()
        except Exception:
            self._record_failure(now_seconds)
            raise
        self._state = CircuitBreakerState()
        return result

    def _record_failure(self, now_seconds: float) -> None:
        self._state.failure_count += 1
        if self._state.failure_count >= self._failure_threshold:
            self._state.opened_at_seconds = now_seconds
            logger.error(
                "circuit_opened",
                extra={
                    "component": self._name,
                    "failure_count": self._state.failure_count,
                    "opened_at_seconds": now_seconds,
                },
            )
