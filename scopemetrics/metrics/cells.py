"""Per-metric accumulation state.

Each cell owns a private mutex and nothing else; recording a value never
touches scope or registry locks. Cells hold the current un-reported window
only: a report tick reads and advances it, a snapshot reads without
advancing.
"""
from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol

from .buckets import Buckets, Duration, to_seconds

if TYPE_CHECKING:  # pragma: no cover - typing only
    from scopemetrics.reporters.base import (
        CachedCounter,
        CachedGauge,
        CachedHistogram,
        CachedHistogramBucket,
        CachedTimer,
        StatsReporter,
    )


class _StopwatchRecorder(Protocol):
    def record_stopwatch(self, start: float) -> None: ...


class Stopwatch:
    """Started timing returned by ``Timer.start()`` / ``Histogram.start()``."""

    __slots__ = ("_start", "_recorder")

    def __init__(self, start: float, recorder: _StopwatchRecorder):
        self._start = start
        self._recorder = recorder

    def stop(self) -> None:
        self._recorder.record_stopwatch(self._start)


class Counter:
    """Running total; reports the delta since the previous report."""

    __slots__ = ("_lock", "_curr", "_prev", "_cached")

    def __init__(self, cached: CachedCounter | None = None):
        self._lock = threading.Lock()
        self._curr: float = 0
        self._prev: float = 0
        self._cached = cached

    def inc(self, delta: float = 1) -> None:
        with self._lock:
            self._curr += delta

    def value(self) -> float:
        """Pending delta; advances the report watermark."""
        with self._lock:
            curr = self._curr
            delta = curr - self._prev
            self._prev = curr
        return delta

    def snapshot(self) -> float:
        with self._lock:
            return self._curr - self._prev

    def report(self, name: str, tags: Mapping[str, str], reporter: StatsReporter | None) -> None:
        delta = self.value()
        if delta == 0:
            return
        if reporter is not None:
            reporter.report_counter(name, tags, delta)
        if self._cached is not None:
            self._cached.report_count(delta)


class Gauge:
    """Last written value; reported only when updated since the previous report."""

    __slots__ = ("_lock", "_value", "_updated", "_cached")

    def __init__(self, cached: CachedGauge | None = None):
        self._lock = threading.Lock()
        self._value: float = 0.0
        self._updated = False
        self._cached = cached

    def update(self, value: float) -> None:
        with self._lock:
            self._value = float(value)
            self._updated = True

    def _take(self) -> tuple[bool, float]:
        with self._lock:
            updated, self._updated = self._updated, False
            return updated, self._value

    def snapshot(self) -> float:
        with self._lock:
            return self._value

    def report(self, name: str, tags: Mapping[str, str], reporter: StatsReporter | None) -> None:
        updated, value = self._take()
        if not updated:
            return
        if reporter is not None:
            reporter.report_gauge(name, tags, value)
        if self._cached is not None:
            self._cached.report_gauge(value)


class _TimingMixin:
    """start()/time() helpers shared by timers and histograms."""

    __slots__ = ()

    def record_duration_seconds(self, seconds: float) -> None:  # pragma: no cover - overridden
        raise NotImplementedError

    def start(self) -> Stopwatch:
        return Stopwatch(time.perf_counter(), self)  # type: ignore[arg-type]

    def record_stopwatch(self, start: float) -> None:
        self.record_duration_seconds(time.perf_counter() - start)

    @contextmanager
    def time(self) -> Iterator[None]:
        """Record the elapsed time of the ``with`` block (or decorated call)."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_stopwatch(start)


# Upper bound on durations a timer holds when nothing can receive them.
MAX_RETAINED_DURATIONS = 1024


class Timer(_TimingMixin):
    """Pass-through duration recorder.

    Each record goes straight to the backend: the cached handle when one was
    allocated, else the plain reporter. When there is no backend to receive
    them, or the scope tree has been closed, only the most recent
    ``max_retained`` durations are kept locally for snapshots.
    """

    __slots__ = ("_name", "_tags", "_reporter", "_cached", "_closed", "_lock", "_unreported")

    def __init__(
        self,
        name: str,
        tags: Mapping[str, str],
        reporter: StatsReporter | None = None,
        cached: CachedTimer | None = None,
        closed: Callable[[], bool] | None = None,
        max_retained: int = MAX_RETAINED_DURATIONS,
    ):
        self._name = name
        self._tags = tags
        self._reporter = reporter
        self._cached = cached
        self._closed = closed or (lambda: False)
        self._lock = threading.Lock()
        self._unreported: deque[float] = deque(maxlen=max_retained)

    @property
    def name(self) -> str:
        return self._name

    def record(self, duration: Duration) -> None:
        self.record_duration_seconds(to_seconds(duration))

    def record_duration_seconds(self, seconds: float) -> None:
        if self._closed() or (self._cached is None and self._reporter is None):
            with self._lock:
                self._unreported.append(seconds)
        elif self._cached is not None:
            self._cached.report_timer(seconds)
        else:
            self._reporter.report_timer(self._name, self._tags, seconds)  # type: ignore[union-attr]

    def snapshot(self) -> tuple[float, ...]:
        with self._lock:
            return tuple(self._unreported)


class _HistogramBucket:
    __slots__ = ("lower", "upper", "samples", "cached")

    def __init__(self, lower: float, upper: float, cached: CachedHistogramBucket | None):
        self.lower = lower
        self.upper = upper
        self.samples = Counter()
        self.cached = cached


class Histogram(_TimingMixin):
    """Bucketed sample counts; reports per-bucket deltas like a counter."""

    __slots__ = ("_buckets", "_bucket_list", "_is_duration")

    def __init__(self, buckets: Buckets, cached: CachedHistogram | None = None):
        self._buckets = buckets
        self._is_duration = buckets.kind == "duration"
        bucket_list = []
        for lower, upper in buckets.bucket_bounds():
            handle = None
            if cached is not None:
                if self._is_duration:
                    handle = cached.duration_bucket(lower, upper)
                else:
                    handle = cached.value_bucket(lower, upper)
            bucket_list.append(_HistogramBucket(lower, upper, handle))
        self._bucket_list: tuple[_HistogramBucket, ...] = tuple(bucket_list)

    @property
    def buckets(self) -> Buckets:
        return self._buckets

    def record_value(self, value: float) -> None:
        self._bucket_list[self._buckets.index_of(value)].samples.inc(1)

    def record_duration(self, duration: Duration) -> None:
        self.record_duration_seconds(to_seconds(duration))

    def record_duration_seconds(self, seconds: float) -> None:
        self._bucket_list[self._buckets.index_of(seconds)].samples.inc(1)

    def report(self, name: str, tags: Mapping[str, str], reporter: StatsReporter | None) -> None:
        for bucket in self._bucket_list:
            samples = bucket.samples.value()
            if samples == 0:
                continue
            if reporter is not None:
                if self._is_duration:
                    reporter.report_histogram_duration_samples(
                        name, tags, self._buckets, bucket.lower, bucket.upper, samples,
                    )
                else:
                    reporter.report_histogram_value_samples(
                        name, tags, self._buckets, bucket.lower, bucket.upper, samples,
                    )
            if bucket.cached is not None:
                bucket.cached.report_samples(samples)

    def _snapshot_counts(self) -> dict[float, float]:
        return {b.upper: b.samples.snapshot() for b in self._bucket_list}

    def snapshot_values(self) -> dict[float, float]:
        """Pending count per bucket upper bound; empty for duration buckets."""
        return {} if self._is_duration else self._snapshot_counts()

    def snapshot_durations(self) -> dict[float, float]:
        return self._snapshot_counts() if self._is_duration else {}


__all__ = ["MAX_RETAINED_DURATIONS", "Stopwatch", "Counter", "Gauge", "Timer", "Histogram"]
