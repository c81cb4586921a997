"""scopemetrics: hierarchical, tagged metrics scopes with pluggable reporters.

Typical use::

    from scopemetrics import new_root_scope, PrometheusReporter

    reporter = PrometheusReporter()
    root = new_root_scope(cached_reporter=reporter, prefix="svc", report_interval=1.0)
    root.counter("requests").inc()
    root.sub_scope("db").tagged({"table": "users"}).timer("query").record(0.012)
    root.close()
"""
from .config.settings import ScopeSettings, load_settings
from .metrics import (
    DEFAULT_BUCKETS,
    Buckets,
    Counter,
    DurationBuckets,
    Gauge,
    Histogram,
    Scope,
    Snapshot,
    Stopwatch,
    TagSet,
    Timer,
    ValueBuckets,
    exponential_duration_buckets,
    exponential_value_buckets,
    linear_duration_buckets,
    linear_value_buckets,
    new_root_scope,
    noop_scope,
    root_scope_from_settings,
)
from .reporters import (
    CachedStatsReporter,
    Capabilities,
    CapableOf,
    LoggingStatsReporter,
    NullStatsReporter,
    PrometheusReporter,
    StatsReporter,
)
from .utils.exceptions import ConfigError, InvalidBucketsError, ScopeMetricsError
from .utils.logging_utils import setup_logging
from .version import __version__, get_version

__all__ = [
    "ScopeSettings",
    "load_settings",
    "DEFAULT_BUCKETS",
    "Buckets",
    "Counter",
    "DurationBuckets",
    "Gauge",
    "Histogram",
    "Scope",
    "Snapshot",
    "Stopwatch",
    "TagSet",
    "Timer",
    "ValueBuckets",
    "exponential_duration_buckets",
    "exponential_value_buckets",
    "linear_duration_buckets",
    "linear_value_buckets",
    "new_root_scope",
    "noop_scope",
    "root_scope_from_settings",
    "CachedStatsReporter",
    "Capabilities",
    "CapableOf",
    "LoggingStatsReporter",
    "NullStatsReporter",
    "PrometheusReporter",
    "StatsReporter",
    "ConfigError",
    "InvalidBucketsError",
    "ScopeMetricsError",
    "setup_logging",
    "__version__",
    "get_version",
]
