"""Plain reporter writing one log record per reported value.

Useful in development and in batch jobs where scraping is not available.
Records look like::

    metric.counter name=svc.requests tags=env=prod value=5
"""
from __future__ import annotations

import logging
from collections.abc import Mapping

from scopemetrics.metrics.buckets import Buckets

from .base import Capabilities, CapableOf, StatsReporter

logger = logging.getLogger(__name__)


def _fmt_tags(tags: Mapping[str, str]) -> str:
    if not tags:
        return "-"
    return ",".join(f"{k}={tags[k]}" for k in sorted(tags))


class LoggingStatsReporter(StatsReporter):
    def __init__(self, level: int | str = logging.INFO, log: logging.Logger | None = None):
        if isinstance(level, str):
            resolved = logging.getLevelName(level.upper())
            if not isinstance(resolved, int):
                raise ValueError(f"unknown log level {level!r}")
            level = resolved
        self.level = level
        self._logger = log or logger

    def capabilities(self) -> Capabilities:
        return CapableOf.REPORTING_TAGGING

    def flush(self) -> None:
        for handler in self._logger.handlers:
            handler.flush()

    def close(self) -> None:
        self.flush()

    def report_counter(self, name: str, tags: Mapping[str, str], value: float) -> None:
        self._logger.log(self.level, "metric.counter name=%s tags=%s value=%s", name, _fmt_tags(tags), value)

    def report_gauge(self, name: str, tags: Mapping[str, str], value: float) -> None:
        self._logger.log(self.level, "metric.gauge name=%s tags=%s value=%s", name, _fmt_tags(tags), value)

    def report_timer(self, name: str, tags: Mapping[str, str], duration: float) -> None:
        self._logger.log(self.level, "metric.timer name=%s tags=%s seconds=%.6f", name, _fmt_tags(tags), duration)

    def report_histogram_value_samples(
        self, name: str, tags: Mapping[str, str], buckets: Buckets,
        bucket_lower: float, bucket_upper: float, samples: int,
    ) -> None:
        self._logger.log(
            self.level, "metric.histogram name=%s tags=%s bucket=(%s,%s] samples=%s",
            name, _fmt_tags(tags), bucket_lower, bucket_upper, samples,
        )

    def report_histogram_duration_samples(
        self, name: str, tags: Mapping[str, str], buckets: Buckets,
        bucket_lower: float, bucket_upper: float, samples: int,
    ) -> None:
        self._logger.log(
            self.level, "metric.histogram name=%s tags=%s bucket=(%ss,%ss] samples=%s",
            name, _fmt_tags(tags), bucket_lower, bucket_upper, samples,
        )


__all__ = ["LoggingStatsReporter"]
