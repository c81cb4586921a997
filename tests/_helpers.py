"""Recording fakes for both reporter protocols."""
from __future__ import annotations

import threading

from scopemetrics.reporters.base import CachedStatsReporter, CapableOf, StatsReporter


class RecordingReporter(StatsReporter):
    def __init__(self, caps=CapableOf.REPORTING_TAGGING):
        self.caps = caps
        self.lock = threading.Lock()
        self.counters = []
        self.gauges = []
        self.timers = []
        self.value_samples = []
        self.duration_samples = []
        self.flushes = 0
        self.closes = 0
        self.fail_next_flush = False

    def capabilities(self):
        return self.caps

    def flush(self):
        with self.lock:
            self.flushes += 1
            if self.fail_next_flush:
                self.fail_next_flush = False
                raise RuntimeError('flush failed')

    def close(self):
        with self.lock:
            self.closes += 1

    def report_counter(self, name, tags, value):
        with self.lock:
            self.counters.append((name, dict(tags), value))

    def report_gauge(self, name, tags, value):
        with self.lock:
            self.gauges.append((name, dict(tags), value))

    def report_timer(self, name, tags, duration):
        with self.lock:
            self.timers.append((name, dict(tags), duration))

    def report_histogram_value_samples(self, name, tags, buckets, bucket_lower, bucket_upper, samples):
        with self.lock:
            self.value_samples.append((name, dict(tags), bucket_lower, bucket_upper, samples))

    def report_histogram_duration_samples(self, name, tags, buckets, bucket_lower, bucket_upper, samples):
        with self.lock:
            self.duration_samples.append((name, dict(tags), bucket_lower, bucket_upper, samples))

    def counter_total(self, name, tags=None):
        with self.lock:
            return sum(v for n, t, v in self.counters if n == name and (tags is None or t == tags))


class _Handle:
    def __init__(self):
        self.values = []

    def report_count(self, value):
        self.values.append(value)

    def report_gauge(self, value):
        self.values.append(value)

    def report_timer(self, duration):
        self.values.append(duration)

    def report_samples(self, value):
        self.values.append(value)


class _HistogramHandle:
    def __init__(self, buckets):
        self.buckets = buckets
        self.value_buckets = {}
        self.duration_buckets = {}

    def value_bucket(self, bucket_lower, bucket_upper):
        return self.value_buckets.setdefault((bucket_lower, bucket_upper), _Handle())

    def duration_bucket(self, bucket_lower, bucket_upper):
        return self.duration_buckets.setdefault((bucket_lower, bucket_upper), _Handle())


class RecordingCachedReporter(CachedStatsReporter):
    """Hands out one handle per (kind, name, tags); counts allocation calls."""

    def __init__(self):
        self.lock = threading.Lock()
        self.handles = {}
        self.allocations = 0
        self.flushes = 0
        self.closes = 0

    def _get(self, kind, name, tags, factory):
        key = (kind, name, tuple(sorted(dict(tags).items())))
        with self.lock:
            self.allocations += 1
            handle = self.handles.get(key)
            if handle is None:
                handle = factory()
                self.handles[key] = handle
            return handle

    def handle(self, kind, name, tags=None):
        return self.handles[(kind, name, tuple(sorted((tags or {}).items())))]

    def capabilities(self):
        return CapableOf.REPORTING

    def flush(self):
        self.flushes += 1

    def close(self):
        self.closes += 1

    def allocate_counter(self, name, tags):
        return self._get('counter', name, tags, _Handle)

    def allocate_gauge(self, name, tags):
        return self._get('gauge', name, tags, _Handle)

    def allocate_timer(self, name, tags):
        return self._get('timer', name, tags, _Handle)

    def allocate_histogram(self, name, tags, buckets):
        return self._get('histogram', name, tags, lambda: _HistogramHandle(buckets))
