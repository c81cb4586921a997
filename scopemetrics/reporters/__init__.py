"""Reporter backends for scope trees."""
from .base import (
    BaseStatsReporter,
    CachedStatsReporter,
    Capabilities,
    CapableOf,
    StatsReporter,
)
from .logging_reporter import LoggingStatsReporter
from .null import NullStatsReporter
from .prometheus import PrometheusReporter

__all__ = [
    "BaseStatsReporter",
    "CachedStatsReporter",
    "Capabilities",
    "CapableOf",
    "StatsReporter",
    "LoggingStatsReporter",
    "NullStatsReporter",
    "PrometheusReporter",
]
