"""Reporter that accepts and discards everything."""
from __future__ import annotations

from collections.abc import Mapping

from scopemetrics.metrics.buckets import Buckets

from .base import Capabilities, CapableOf, StatsReporter


class NullStatsReporter(StatsReporter):
    def capabilities(self) -> Capabilities:
        return CapableOf.NONE

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass

    def report_counter(self, name: str, tags: Mapping[str, str], value: float) -> None:
        pass

    def report_gauge(self, name: str, tags: Mapping[str, str], value: float) -> None:
        pass

    def report_timer(self, name: str, tags: Mapping[str, str], duration: float) -> None:
        pass

    def report_histogram_value_samples(
        self, name: str, tags: Mapping[str, str], buckets: Buckets,
        bucket_lower: float, bucket_upper: float, samples: int,
    ) -> None:
        pass

    def report_histogram_duration_samples(
        self, name: str, tags: Mapping[str, str], buckets: Buckets,
        bucket_lower: float, bucket_upper: float, samples: int,
    ) -> None:
        pass


__all__ = ["NullStatsReporter"]
