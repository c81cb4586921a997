"""scopemetrics exception hierarchy.

Errors are reserved for configuration mistakes a caller can fix; the
instrumentation path treats omitted configuration as "use the default".
"""
from __future__ import annotations


class ScopeMetricsError(Exception):
    """Base class for all scopemetrics exceptions."""


class ConfigError(ScopeMetricsError):
    """Settings file or environment override failed validation."""


class InvalidBucketsError(ScopeMetricsError, ValueError):
    """Bucket generator called with parameters that cannot produce buckets."""


__all__ = [
    "ScopeMetricsError",
    "ConfigError",
    "InvalidBucketsError",
]
