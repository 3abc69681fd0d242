from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass


@dataclass(frozen=True)
class StageDuration:
    stage: str
    duration_ms: float


class InMemorySyncMetricsCollector:
    def __init__(self) -> None:
        self.stage_durations: list[StageDuration] = []
        self.sync_total: dict[str, int] = defaultdict(int)
        self.provider_failure_total: dict[str, int] = defaultdict(int)
        self.fallback_count = 0
        self.stale_discard_count = 0
        self.dropped_duplicate_count = 0

    def observe_stage_duration(self, stage: str, duration_ms: float) -> None:
        self.stage_durations.append(StageDuration(stage=stage, duration_ms=duration_ms))

    def increment_sync(self, outcome: str) -> None:
        self.sync_total[outcome] += 1

    def increment_provider_failure(self, provider: str) -> None:
        self.provider_failure_total[provider] += 1

    def increment_fallback(self) -> None:
        self.fallback_count += 1

    def increment_stale_discard(self) -> None:
        self.stale_discard_count += 1

    def add_dropped_duplicates(self, count: int) -> None:
        if count > 0:
            self.dropped_duplicate_count += count
