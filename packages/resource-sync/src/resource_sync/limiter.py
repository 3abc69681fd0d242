from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

from resource_sync.exceptions import LimitExceededError

T = TypeVar("T")
logger = logging.getLogger(__name__)

DEFAULT_ENTITY_LIMIT = 50


class EntityLimiter:
    def __init__(self, limit: int = DEFAULT_ENTITY_LIMIT) -> None:
        if limit < 0:
            raise ValueError("limit must be >= 0")
        self._limit = limit

    @property
    def limit(self) -> int:
        return self._limit

    def check(self, resources: Sequence[T]) -> Sequence[T]:
        count = len(resources)
        if count > self._limit:
            logger.warning("entity_limit_exceeded", extra={"count": count, "limit": self._limit})
            raise LimitExceededError(count=count, limit=self._limit)
        return resources
