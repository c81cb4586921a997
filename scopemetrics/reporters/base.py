"""Reporter interfaces consumed by the scope tree.

Two protocols exist side by side:

* ``StatsReporter`` (plain): every report tick calls ``report_*`` with the
  metric's fully-qualified name and tags, then ``flush()``.
* ``CachedStatsReporter``: backend-side handles are allocated once, when a
  metric cell is created, and each tick pushes deltas straight into them.

A scope tree may be configured with either or both. Neither protocol is
called while a scope or registry lock is held.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover - typing only
    from scopemetrics.metrics.buckets import Buckets


@dataclass(frozen=True)
class Capabilities:
    """What a backend advertises; the scope tree forwards it uninterpreted."""
    reporting: bool = False
    tagging: bool = False


class CapableOf:
    NONE = Capabilities(reporting=False, tagging=False)
    REPORTING = Capabilities(reporting=True, tagging=False)
    REPORTING_TAGGING = Capabilities(reporting=True, tagging=True)


class BaseStatsReporter(ABC):
    @abstractmethod
    def capabilities(self) -> Capabilities: ...

    @abstractmethod
    def flush(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class StatsReporter(BaseStatsReporter):
    """Backend receiving fully resolved values on every report tick."""

    @abstractmethod
    def report_counter(self, name: str, tags: Mapping[str, str], value: float) -> None: ...

    @abstractmethod
    def report_gauge(self, name: str, tags: Mapping[str, str], value: float) -> None: ...

    @abstractmethod
    def report_timer(self, name: str, tags: Mapping[str, str], duration: float) -> None:
        """Called at record time, not on the tick; ``duration`` is seconds."""

    @abstractmethod
    def report_histogram_value_samples(
        self,
        name: str,
        tags: Mapping[str, str],
        buckets: Buckets,
        bucket_lower: float,
        bucket_upper: float,
        samples: int,
    ) -> None: ...

    @abstractmethod
    def report_histogram_duration_samples(
        self,
        name: str,
        tags: Mapping[str, str],
        buckets: Buckets,
        bucket_lower: float,
        bucket_upper: float,
        samples: int,
    ) -> None: ...


class CachedCounter(Protocol):
    def report_count(self, value: float) -> None: ...


class CachedGauge(Protocol):
    def report_gauge(self, value: float) -> None: ...


class CachedTimer(Protocol):
    def report_timer(self, duration: float) -> None: ...


class CachedHistogramBucket(Protocol):
    def report_samples(self, value: int) -> None: ...


class CachedHistogram(Protocol):
    def value_bucket(self, bucket_lower: float, bucket_upper: float) -> CachedHistogramBucket: ...

    def duration_bucket(self, bucket_lower: float, bucket_upper: float) -> CachedHistogramBucket: ...


class CachedStatsReporter(BaseStatsReporter):
    """Backend handing out per-metric handles at allocation time.

    Allocation may be invoked more than once for the same (name, tags) when
    two threads race to create a metric; only one handle is kept. Implementations
    must therefore make ``allocate_*`` idempotent.
    """

    @abstractmethod
    def allocate_counter(self, name: str, tags: Mapping[str, str]) -> CachedCounter: ...

    @abstractmethod
    def allocate_gauge(self, name: str, tags: Mapping[str, str]) -> CachedGauge: ...

    @abstractmethod
    def allocate_timer(self, name: str, tags: Mapping[str, str]) -> CachedTimer: ...

    @abstractmethod
    def allocate_histogram(self, name: str, tags: Mapping[str, str], buckets: Buckets) -> CachedHistogram: ...


__all__ = [
    "Capabilities",
    "CapableOf",
    "BaseStatsReporter",
    "StatsReporter",
    "CachedStatsReporter",
    "CachedCounter",
    "CachedGauge",
    "CachedTimer",
    "CachedHistogram",
    "CachedHistogramBucket",
]
