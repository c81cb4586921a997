"""Scope tree: scopes, metric cells, registry, report loop and snapshots."""
from .buckets import (
    DEFAULT_BUCKETS,
    Buckets,
    DurationBuckets,
    ValueBuckets,
    exponential_duration_buckets,
    exponential_value_buckets,
    linear_duration_buckets,
    linear_value_buckets,
    to_seconds,
)
from .cells import Counter, Gauge, Histogram, Stopwatch, Timer
from .factory import new_root_scope, noop_scope, root_scope_from_settings
from .registry import ScopeRegistry
from .report_loop import ReportLoop
from .scope import Scope
from .snapshot import CounterSnapshot, GaugeSnapshot, HistogramSnapshot, Snapshot, TimerSnapshot
from .tags import EMPTY_TAGS, TagSet, key_for_prefixed_tags, merge_tags

__all__ = [
    "DEFAULT_BUCKETS",
    "Buckets",
    "DurationBuckets",
    "ValueBuckets",
    "exponential_duration_buckets",
    "exponential_value_buckets",
    "linear_duration_buckets",
    "linear_value_buckets",
    "to_seconds",
    "Counter",
    "Gauge",
    "Histogram",
    "Stopwatch",
    "Timer",
    "new_root_scope",
    "noop_scope",
    "root_scope_from_settings",
    "ScopeRegistry",
    "ReportLoop",
    "Scope",
    "CounterSnapshot",
    "GaugeSnapshot",
    "HistogramSnapshot",
    "Snapshot",
    "TimerSnapshot",
    "EMPTY_TAGS",
    "TagSet",
    "key_for_prefixed_tags",
    "merge_tags",
]
