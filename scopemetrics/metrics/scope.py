"""Scopes: named, tagged namespaces owning metric cells.

Allocation discipline (counter/gauge/timer/histogram alike)::

    cell = cells.get(name)            # lock-free fast path
    if cell is None:
        with <kind lock>:             # one lock per kind per scope
            cell = cells.get(name)    # re-check: another thread may have won
            if cell is None:
                cells[name] = cell = new cell
    return cell

The maps are only ever written under their kind's lock and are copied before
iteration, so the report pass and snapshots can walk them while other threads
allocate. Backend code (reporters, cached handle allocation) is never called
with a lock held.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING

from scopemetrics.reporters.base import CapableOf

from .buckets import DEFAULT_BUCKETS, Buckets
from .cells import Counter, Gauge, Histogram, Timer
from .snapshot import CounterSnapshot, GaugeSnapshot, HistogramSnapshot, Snapshot, TimerSnapshot
from .tags import EMPTY_TAGS, TagSet, key_for_prefixed_tags, merge_tags

if TYPE_CHECKING:  # pragma: no cover - typing only
    from scopemetrics.reporters.base import BaseStatsReporter, Capabilities, CachedStatsReporter, StatsReporter

    from .registry import ScopeRegistry
    from .report_loop import ReportLoop

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "."


class Scope:
    """A node of the scope tree.

    Scopes are created by ``new_root_scope`` and, below it, by ``tagged`` and
    ``sub_scope``; never construct one directly. All scopes of a tree share
    one ScopeRegistry, reporters and report loop.
    """

    def __init__(
        self,
        registry: ScopeRegistry,
        *,
        reporter: StatsReporter | None = None,
        cached_reporter: CachedStatsReporter | None = None,
        prefix: str = "",
        separator: str = DEFAULT_SEPARATOR,
        tags: Mapping[str, str] | None = None,
        default_buckets: Buckets | None = None,
        report_loop: ReportLoop | None = None,
    ):
        self._registry = registry
        self._reporter = reporter
        self._cached_reporter = cached_reporter
        self._prefix = prefix or ""
        self._separator = separator if separator is not None else DEFAULT_SEPARATOR
        self._tags = tags if isinstance(tags, TagSet) else (TagSet(tags) if tags else EMPTY_TAGS)
        self._default_buckets = default_buckets if default_buckets is not None else DEFAULT_BUCKETS
        self._report_loop = report_loop

        self._counters: dict[str, Counter] = {}
        self._gauges: dict[str, Gauge] = {}
        self._timers: dict[str, Timer] = {}
        self._histograms: dict[str, Histogram] = {}

        self._counter_lock = threading.Lock()
        self._gauge_lock = threading.Lock()
        self._timer_lock = threading.Lock()
        self._histogram_lock = threading.Lock()

    # ------------------------------------------------------------------ props
    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def separator(self) -> str:
        return self._separator

    @property
    def tags(self) -> TagSet:
        return self._tags

    @property
    def default_buckets(self) -> Buckets:
        return self._default_buckets

    @property
    def registry(self) -> ScopeRegistry:
        return self._registry

    @property
    def identity_key(self) -> str:
        return key_for_prefixed_tags(self._prefix, self._tags)

    @property
    def closed(self) -> bool:
        return self._registry.closed

    def __repr__(self) -> str:
        return f"Scope(prefix={self._prefix!r}, tags={self._tags.to_dict()!r})"

    def fully_qualified_name(self, name: str) -> str:
        if not self._prefix:
            return name
        return f"{self._prefix}{self._separator}{name}"

    # -------------------------------------------------------------- metrics
    def counter(self, name: str) -> Counter:
        counter = self._counters.get(name)
        if counter is not None:
            return counter
        cached = None
        if self._cached_reporter is not None:
            cached = self._cached_reporter.allocate_counter(self.fully_qualified_name(name), self._tags)
        with self._counter_lock:
            counter = self._counters.get(name)
            if counter is None:
                counter = Counter(cached)
                self._counters[name] = counter
            return counter

    def gauge(self, name: str) -> Gauge:
        gauge = self._gauges.get(name)
        if gauge is not None:
            return gauge
        cached = None
        if self._cached_reporter is not None:
            cached = self._cached_reporter.allocate_gauge(self.fully_qualified_name(name), self._tags)
        with self._gauge_lock:
            gauge = self._gauges.get(name)
            if gauge is None:
                gauge = Gauge(cached)
                self._gauges[name] = gauge
            return gauge

    def timer(self, name: str) -> Timer:
        timer = self._timers.get(name)
        if timer is not None:
            return timer
        # Resolved once here; every record() reuses it.
        full_name = self.fully_qualified_name(name)
        cached = None
        if self._cached_reporter is not None:
            cached = self._cached_reporter.allocate_timer(full_name, self._tags)
        with self._timer_lock:
            timer = self._timers.get(name)
            if timer is None:
                registry = self._registry
                timer = Timer(full_name, self._tags, self._reporter, cached, lambda: registry.closed)
                self._timers[name] = timer
            return timer

    def histogram(self, name: str, buckets: Buckets | None = None) -> Histogram:
        """Return the histogram for name; buckets only apply on first allocation."""
        histogram = self._histograms.get(name)
        if histogram is not None:
            return histogram
        if buckets is None:
            buckets = self._default_buckets
        cached = None
        if self._cached_reporter is not None:
            cached = self._cached_reporter.allocate_histogram(self.fully_qualified_name(name), self._tags, buckets)
        with self._histogram_lock:
            histogram = self._histograms.get(name)
            if histogram is None:
                histogram = Histogram(buckets, cached)
                self._histograms[name] = histogram
            return histogram

    # ---------------------------------------------------------------- scopes
    def tagged(self, tags: Mapping[str, str] | None) -> Scope:
        return self._sub_scope_helper(self._prefix, tags)

    def sub_scope(self, name: str) -> Scope:
        return self._sub_scope_helper(self.fully_qualified_name(name), None)

    def _sub_scope_helper(self, prefix: str, tags: Mapping[str, str] | None) -> Scope:
        merged = merge_tags(self._tags, tags)
        key = key_for_prefixed_tags(prefix, merged)
        return self._registry.get_or_create(key, lambda: Scope(
            self._registry,
            reporter=self._reporter,
            cached_reporter=self._cached_reporter,
            prefix=prefix,
            separator=self._separator,
            tags=merged,
            default_buckets=self._default_buckets,
            report_loop=self._report_loop,
        ))

    def capabilities(self) -> Capabilities:
        base = self._base_reporter()
        if base is not None:
            return base.capabilities()
        return CapableOf.NONE

    def _base_reporter(self) -> BaseStatsReporter | None:
        if self._reporter is not None:
            return self._reporter
        return self._cached_reporter

    # ------------------------------------------------------------- reporting
    def _report(self, reporter: StatsReporter | None) -> None:
        """Push this scope's pending values to the plain reporter and/or cached handles.

        Fully-qualified names are only built when a plain reporter needs them.
        Timers are not visited: they push at record time.
        """
        tags = self._tags
        for name, counter in self._counters.copy().items():
            counter.report(self.fully_qualified_name(name) if reporter is not None else name, tags, reporter)
        for name, gauge in self._gauges.copy().items():
            gauge.report(self.fully_qualified_name(name) if reporter is not None else name, tags, reporter)
        for name, histogram in self._histograms.copy().items():
            histogram.report(self.fully_qualified_name(name) if reporter is not None else name, tags, reporter)

    def _report_loop_iteration(self) -> None:
        """One pass over every scope of the tree, then flush the backends."""
        reporter = self._reporter
        cached_reporter = self._cached_reporter
        if reporter is None and cached_reporter is None:
            return
        for scope in self._registry.scopes():
            scope._report(reporter)
        if reporter is not None:
            reporter.flush()
        if cached_reporter is not None:
            cached_reporter.flush()

    def report_now(self) -> None:
        """Run one report pass synchronously; no-op once the tree is closed."""
        if self._registry.closed:
            logger.debug("scope.report_now.ignored prefix=%s reason=closed", self._prefix)
            return
        self._report_loop_iteration()

    def snapshot(self) -> Snapshot:
        """Side-effect-free capture of every metric in every scope of the tree."""
        counters: dict[str, CounterSnapshot] = {}
        gauges: dict[str, GaugeSnapshot] = {}
        timers: dict[str, TimerSnapshot] = {}
        histograms: dict[str, HistogramSnapshot] = {}
        for scope in self._registry.scopes():
            tags = scope._tags
            for name, counter in scope._counters.copy().items():
                full = scope.fully_qualified_name(name)
                counters[key_for_prefixed_tags(full, tags)] = CounterSnapshot(full, tags, counter.snapshot())
            for name, gauge in scope._gauges.copy().items():
                full = scope.fully_qualified_name(name)
                gauges[key_for_prefixed_tags(full, tags)] = GaugeSnapshot(full, tags, gauge.snapshot())
            for name, timer in scope._timers.copy().items():
                full = scope.fully_qualified_name(name)
                timers[key_for_prefixed_tags(full, tags)] = TimerSnapshot(full, tags, timer.snapshot())
            for name, histogram in scope._histograms.copy().items():
                full = scope.fully_qualified_name(name)
                histograms[key_for_prefixed_tags(full, tags)] = HistogramSnapshot(
                    full, tags, histogram.snapshot_values(), histogram.snapshot_durations(),
                )
        return Snapshot(counters=counters, gauges=gauges, timers=timers, histograms=histograms)

    # -------------------------------------------------------------- lifecycle
    def close(self) -> None:
        """Stop periodic reporting, flush once more, then close the backends.

        Closes the whole tree, whichever scope it is called on. Later calls
        are no-ops. A failing final report still closes the reporters before
        the error propagates.
        """
        if not self._registry.mark_closed():
            logger.debug("scope.close.ignored prefix=%s reason=already_closed", self._prefix)
            return
        if self._report_loop is not None:
            self._report_loop.stop()
        try:
            # Metrics may have arrived since the last scheduled tick.
            self._report_loop_iteration()
        finally:
            self._close_reporters()
        logger.debug("scope.closed prefix=%s scopes=%d", self._prefix, len(self._registry))

    def _close_reporters(self) -> None:
        reporter = self._reporter
        cached_reporter = self._cached_reporter
        try:
            if reporter is not None:
                reporter.close()
        finally:
            if cached_reporter is not None and cached_reporter is not reporter:
                cached_reporter.close()

    def __enter__(self) -> Scope:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["Scope", "DEFAULT_SEPARATOR"]
