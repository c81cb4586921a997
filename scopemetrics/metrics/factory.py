"""Root scope construction.

Every call builds an independent tree: its own ScopeRegistry, reporters and
(optionally) report loop. There is no module-level root.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .buckets import Buckets, Duration, DurationBuckets, to_seconds
from .registry import ScopeRegistry
from .report_loop import ReportLoop
from .scope import DEFAULT_SEPARATOR, Scope
from .tags import TagSet

if TYPE_CHECKING:  # pragma: no cover - typing only
    from scopemetrics.config.settings import ScopeSettings
    from scopemetrics.reporters.base import CachedStatsReporter, StatsReporter

logger = logging.getLogger(__name__)


def new_root_scope(
    *,
    reporter: StatsReporter | None = None,
    cached_reporter: CachedStatsReporter | None = None,
    prefix: str = "",
    separator: str = DEFAULT_SEPARATOR,
    tags: Mapping[str, str] | None = None,
    default_buckets: Buckets | None = None,
    report_interval: Duration | None = None,
) -> Scope:
    """Create a root scope.

    With ``report_interval`` (seconds or timedelta) a daemon thread reports
    the whole tree at that period until ``close()``. Without it, reporting
    happens only on ``report_now()`` and on close.
    """
    registry = ScopeRegistry()
    loop = None
    if report_interval is not None:
        loop = ReportLoop(to_seconds(report_interval))
    tag_set = TagSet(tags)
    root = Scope(
        registry,
        reporter=reporter,
        cached_reporter=cached_reporter,
        prefix=prefix,
        separator=separator,
        tags=tag_set,
        default_buckets=default_buckets,
        report_loop=loop,
    )
    root = registry.get_or_create(root.identity_key, lambda: root)
    if loop is not None:
        loop.start(root._report_loop_iteration)
    logger.debug(
        "scope.root_created prefix=%s tags=%s interval=%s reporter=%s cached_reporter=%s",
        prefix, tag_set.to_dict(), report_interval,
        type(reporter).__name__ if reporter is not None else None,
        type(cached_reporter).__name__ if cached_reporter is not None else None,
    )
    return root


def root_scope_from_settings(settings: ScopeSettings) -> Scope:
    """Build the configured reporter and root scope.

    With the prometheus reporter and a port set, the HTTP endpoint is started
    too; it is shut down when the scope is closed.
    """
    reporter = None
    cached_reporter = None
    if settings.reporter == "logging":
        from scopemetrics.reporters.logging_reporter import LoggingStatsReporter

        reporter = LoggingStatsReporter()
    elif settings.reporter == "prometheus":
        from scopemetrics.reporters.prometheus import PrometheusReporter

        cached_reporter = PrometheusReporter()
        if settings.prometheus_port is not None:
            cached_reporter.serve(settings.prometheus_port, settings.prometheus_addr)
    buckets = None
    if settings.default_buckets is not None:
        buckets = DurationBuckets(settings.default_buckets)
    return new_root_scope(
        reporter=reporter,
        cached_reporter=cached_reporter,
        prefix=settings.prefix,
        separator=settings.separator,
        tags=settings.tags,
        default_buckets=buckets,
        report_interval=settings.report_interval,
    )


def noop_scope() -> Scope:
    """Root scope that accepts everything and reports nowhere."""
    from scopemetrics.reporters.null import NullStatsReporter

    return new_root_scope(reporter=NullStatsReporter())


__all__ = ["new_root_scope", "noop_scope", "root_scope_from_settings"]
