"""Cached reporter exposing scope metrics through prometheus_client.

The reporter is a custom ``Collector``: each scope-tree metric cell gets a
small handle at allocation time, report ticks push deltas into the handles,
and every scrape renders the handles' cumulative totals as metric families.

Mapping:

* counter   -> ``CounterMetricFamily`` (``<name>_total``)
* gauge     -> ``GaugeMetricFamily``
* timer     -> ``SummaryMetricFamily`` (``<name>_count`` / ``<name>_sum`` seconds)
* histogram -> ``HistogramMetricFamily`` (cumulative ``le`` buckets, no sum)

Names such as ``svc.db.queries`` are sanitized to ``svc_db_queries``. Series
of one metric that carry different tag keys share the union of label names;
missing labels render as the empty string.

Scopes keep one namespace per metric kind, so ``counter("requests")`` and
``timer("requests")`` may coexist. Families are therefore keyed by
(kind, name); when a second kind lands on an exposed name already in use it is
exposed as ``<name>_<kind>`` instead (``svc_requests_timer``) and a warning is
logged once.

Prometheus counters never decrease: a negative counter delta is dropped from
the exposed total (warned once per metric).
"""
from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from prometheus_client import CollectorRegistry, start_http_server
from prometheus_client.core import (
    CounterMetricFamily,
    GaugeMetricFamily,
    HistogramMetricFamily,
    SummaryMetricFamily,
)
from prometheus_client.registry import Collector
from prometheus_client.utils import floatToGoString

from scopemetrics.metrics.buckets import Buckets
from scopemetrics.utils.logging_utils import ErrorOnce

from .base import Capabilities, CapableOf, CachedStatsReporter

logger = logging.getLogger(__name__)

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_:]")
_INVALID_LABEL_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_metric_name(name: str) -> str:
    out = _INVALID_NAME_CHARS.sub("_", name)
    if not out or out[0].isdigit():
        out = "_" + out
    return out


def sanitize_label_name(name: str) -> str:
    out = _INVALID_LABEL_CHARS.sub("_", name)
    if not out or out[0].isdigit():
        out = "_" + out
    # Names starting with __ are reserved for internal use
    if out.startswith("__"):
        out = "_" + out.lstrip("_")
    return out


class _CounterHandle:
    __slots__ = ("_lock", "value", "_name", "_error_once")

    def __init__(self, name: str, error_once: ErrorOnce) -> None:
        self._lock = threading.Lock()
        self.value = 0.0
        self._name = name
        self._error_once = error_once

    def report_count(self, value: float) -> None:
        if value < 0:
            self._error_once.log(
                f"negative:{self._name}",
                "prometheus.counter_negative_dropped name=%s delta=%s", self._name, value,
            )
            return
        with self._lock:
            self.value += value


class _GaugeHandle:
    __slots__ = ("value",)

    def __init__(self) -> None:
        self.value = 0.0

    def report_gauge(self, value: float) -> None:
        self.value = float(value)


class _TimerHandle:
    __slots__ = ("_lock", "count", "total")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.count = 0
        self.total = 0.0

    def report_timer(self, duration: float) -> None:
        with self._lock:
            self.count += 1
            self.total += duration

    def read(self) -> tuple[int, float]:
        with self._lock:
            return self.count, self.total


class _HistogramBucketHandle:
    __slots__ = ("_owner", "_index")

    def __init__(self, owner: _HistogramHandle, index: int):
        self._owner = owner
        self._index = index

    def report_samples(self, value: int) -> None:
        self._owner.add(self._index, value)


class _HistogramHandle:
    def __init__(self, buckets: Buckets):
        self.buckets = buckets
        # one slot per bucket_bounds() entry; the last one is +Inf
        self._uppers = [upper for _, upper in buckets.bucket_bounds()]
        self._counts = [0] * len(self._uppers)
        self._lock = threading.Lock()

    def _bucket(self, upper: float) -> _HistogramBucketHandle:
        return _HistogramBucketHandle(self, self._uppers.index(upper))

    def value_bucket(self, bucket_lower: float, bucket_upper: float) -> _HistogramBucketHandle:
        return self._bucket(bucket_upper)

    def duration_bucket(self, bucket_lower: float, bucket_upper: float) -> _HistogramBucketHandle:
        return self._bucket(bucket_upper)

    def add(self, index: int, value: int) -> None:
        with self._lock:
            self._counts[index] += value

    def cumulative(self) -> list[tuple[str, float]]:
        with self._lock:
            counts = list(self._counts)
        out: list[tuple[str, float]] = []
        running = 0
        for upper, count in zip(self._uppers, counts):
            running += count
            out.append((floatToGoString(upper), running))
        return out


class _Family:
    """All series of one exposed metric name."""

    def __init__(self, kind: str, name: str, source_name: str):
        self.kind = kind
        self.name = name
        self.source_name = source_name
        self.series: dict[tuple[tuple[str, str], ...], Any] = {}

    def label_names(self) -> list[str]:
        names: set[str] = set()
        for key in self.series:
            names.update(k for k, _ in key)
        return sorted(names)


class PrometheusReporter(CachedStatsReporter, Collector):
    """Collector-backed cached reporter.

    Registered on ``registry`` (a private ``CollectorRegistry`` unless one is
    passed in; pass ``prometheus_client.REGISTRY`` to share the process-wide
    default).
    """

    def __init__(self, registry: CollectorRegistry | None = None, *, namespace: str = ""):
        self.registry = registry if registry is not None else CollectorRegistry(auto_describe=True)
        self.namespace = sanitize_metric_name(namespace) if namespace else ""
        # (kind, sanitized name) -> family; exposed names are unique across kinds
        self._families: dict[tuple[str, str], _Family] = {}
        self._exposed: set[str] = set()
        self._lock = threading.Lock()
        self._error_once = ErrorOnce(logger)
        self._server: Any = None
        self._closed = False
        self.registry.register(self)

    # ----------------------------------------------------------- allocation
    def _metric_name(self, name: str) -> str:
        name = sanitize_metric_name(name)
        if self.namespace:
            return f"{self.namespace}_{name}"
        return name

    def _label_key(self, name: str, tags: Mapping[str, str]) -> tuple[tuple[str, str], ...]:
        labels: dict[str, str] = {}
        collided: list[str] = []
        # sorted by original key so the surviving value is deterministic
        for k in sorted(tags):
            label = sanitize_label_name(k)
            if label in labels:
                collided.append(label)
            labels[label] = str(tags[k])
        if collided:
            self._error_once.log(
                f"label_collision:{name}:{','.join(sorted(set(collided)))}",
                "prometheus.label_collision name=%s labels=%s tags=%s",
                name, ",".join(sorted(set(collided))), sorted(tags),
            )
        return tuple(sorted(labels.items()))

    def _exposed_name(self, kind: str, metric_name: str) -> str:
        # caller holds self._lock
        if metric_name not in self._exposed:
            return metric_name
        candidate = f"{metric_name}_{kind}"
        n = 2
        while candidate in self._exposed:
            candidate = f"{metric_name}_{kind}{n}"
            n += 1
        self._error_once.log(
            f"name_conflict:{kind}:{metric_name}",
            "prometheus.name_conflict name=%s kind=%s exposed_as=%s", metric_name, kind, candidate,
        )
        return candidate

    def _allocate(self, kind: str, name: str, tags: Mapping[str, str], make: Any) -> Any:
        metric_name = self._metric_name(name)
        key = self._label_key(metric_name, tags)
        with self._lock:
            family = self._families.get((kind, metric_name))
            if family is None:
                exposed = self._exposed_name(kind, metric_name)
                family = _Family(kind, exposed, name)
                self._families[(kind, metric_name)] = family
                self._exposed.add(exposed)
            handle = family.series.get(key)
            if handle is None:
                handle = make()
                family.series[key] = handle
            return handle

    def exposed_name(self, kind: str, name: str) -> str | None:
        """Name a metric allocated as ``kind`` is exposed under, if allocated."""
        with self._lock:
            family = self._families.get((kind, self._metric_name(name)))
        return family.name if family is not None else None

    def allocate_counter(self, name: str, tags: Mapping[str, str]) -> _CounterHandle:
        return self._allocate("counter", name, tags, lambda: _CounterHandle(name, self._error_once))

    def allocate_gauge(self, name: str, tags: Mapping[str, str]) -> _GaugeHandle:
        return self._allocate("gauge", name, tags, _GaugeHandle)

    def allocate_timer(self, name: str, tags: Mapping[str, str]) -> _TimerHandle:
        return self._allocate("timer", name, tags, _TimerHandle)

    def allocate_histogram(self, name: str, tags: Mapping[str, str], buckets: Buckets) -> _HistogramHandle:
        return self._allocate("histogram", name, tags, lambda: _HistogramHandle(buckets))

    # ------------------------------------------------------------ collector
    def describe(self) -> Iterable[Any]:
        # Families appear lazily as cells are allocated; nothing to pre-declare.
        return []

    def collect(self) -> Iterable[Any]:
        with self._lock:
            families = [(f, f.label_names(), list(f.series.items())) for f in self._families.values()]
        for family, label_names, series in families:
            doc = f"scopemetrics {family.kind} {family.source_name}"
            if family.kind == "counter":
                metric: Any = CounterMetricFamily(family.name, doc, labels=label_names)
            elif family.kind == "gauge":
                metric = GaugeMetricFamily(family.name, doc, labels=label_names)
            elif family.kind == "timer":
                metric = SummaryMetricFamily(family.name, doc, labels=label_names)
            else:
                metric = HistogramMetricFamily(family.name, doc, labels=label_names)
            for key, handle in series:
                present = dict(key)
                values = [present.get(label, "") for label in label_names]
                if family.kind in ("counter", "gauge"):
                    metric.add_metric(values, handle.value)
                elif family.kind == "timer":
                    count, total = handle.read()
                    metric.add_metric(values, count_value=count, sum_value=total)
                else:
                    metric.add_metric(values, handle.cumulative(), sum_value=None)
            yield metric

    # ------------------------------------------------------------- reporter
    def capabilities(self) -> Capabilities:
        return CapableOf.REPORTING_TAGGING

    def flush(self) -> None:
        # Values are pulled at scrape time.
        pass

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose this reporter's registry over HTTP at ``addr:port``/metrics."""
        server, _thread = start_http_server(port, addr=addr, registry=self.registry)
        self._server = server
        logger.info("prometheus.endpoint_started addr=%s port=%s", addr, server.server_port)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        server, self._server = self._server, None
        if server is not None:
            server.shutdown()
            server.server_close()
            logger.debug("prometheus.endpoint_stopped")
        try:
            self.registry.unregister(self)
        except KeyError:
            logger.debug("prometheus.unregister_skipped reason=not_registered")


__all__ = ["PrometheusReporter", "sanitize_metric_name", "sanitize_label_name"]
