"""Histogram bucket configuration.

Boundaries are plain floats; durations are expressed in seconds (a
``timedelta`` is accepted anywhere a duration is). N boundaries define N+1
buckets::

    (-inf, b0], (b0, b1], ..., (b[N-1], +inf)

``ValueBuckets`` and ``DurationBuckets`` share the same arithmetic; the kind
only decides which reporter call a histogram's samples are delivered through.
"""
from __future__ import annotations

import math
from bisect import bisect_left
from collections.abc import Iterable, Iterator, Sequence
from datetime import timedelta

from scopemetrics.utils.exceptions import InvalidBucketsError

Duration = float | timedelta


def to_seconds(duration: Duration) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class Buckets(Sequence[float]):
    """Immutable ascending sequence of finite bucket boundaries."""

    kind = "value"

    __slots__ = ("_bounds",)

    def __init__(self, boundaries: Iterable[Duration] = ()):
        cleaned = {to_seconds(b) for b in boundaries}
        self._bounds: tuple[float, ...] = tuple(sorted(b for b in cleaned if math.isfinite(b)))

    def __getitem__(self, index):  # type: ignore[override]
        return self._bounds[index]

    def __len__(self) -> int:
        return len(self._bounds)

    def __iter__(self) -> Iterator[float]:
        return iter(self._bounds)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Buckets):
            return NotImplemented
        return self.kind == other.kind and self._bounds == other._bounds

    def __hash__(self) -> int:
        return hash((self.kind, self._bounds))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._bounds)!r})"

    def bucket_bounds(self) -> tuple[tuple[float, float], ...]:
        """(lower, upper) pairs covering the whole real line."""
        edges = (-math.inf, *self._bounds, math.inf)
        return tuple(zip(edges[:-1], edges[1:]))

    def index_of(self, value: float) -> int:
        """Index of the first bucket whose upper bound is >= value."""
        return bisect_left(self._bounds, value)


class ValueBuckets(Buckets):
    kind = "value"

    __slots__ = ()


class DurationBuckets(Buckets):
    kind = "duration"

    __slots__ = ()


def _check_count(count: int) -> None:
    if count <= 0:
        raise InvalidBucketsError(f"bucket count must be positive, got {count}")


def _linear(start: float, width: float, count: int) -> list[float]:
    _check_count(count)
    if width <= 0:
        raise InvalidBucketsError(f"linear bucket width must be positive, got {width}")
    return [start + i * width for i in range(count)]


def _exponential(start: float, factor: float, count: int) -> list[float]:
    _check_count(count)
    if start <= 0:
        raise InvalidBucketsError(f"exponential bucket start must be positive, got {start}")
    if factor <= 1:
        raise InvalidBucketsError(f"exponential bucket factor must be > 1, got {factor}")
    return [start * factor ** i for i in range(count)]


def linear_value_buckets(start: float, width: float, count: int) -> ValueBuckets:
    return ValueBuckets(_linear(float(start), float(width), count))


def exponential_value_buckets(start: float, factor: float, count: int) -> ValueBuckets:
    return ValueBuckets(_exponential(float(start), float(factor), count))


def linear_duration_buckets(start: Duration, width: Duration, count: int) -> DurationBuckets:
    return DurationBuckets(_linear(to_seconds(start), to_seconds(width), count))


def exponential_duration_buckets(start: Duration, factor: float, count: int) -> DurationBuckets:
    return DurationBuckets(_exponential(to_seconds(start), float(factor), count))


# Conventional latency boundaries (seconds), same as prometheus_client's default.
DEFAULT_BUCKETS = DurationBuckets([.005, .01, .025, .05, .075, .1, .25, .5, .75, 1.0, 2.5, 5.0, 7.5, 10.0])

__all__ = [
    "Duration",
    "to_seconds",
    "Buckets",
    "ValueBuckets",
    "DurationBuckets",
    "linear_value_buckets",
    "exponential_value_buckets",
    "linear_duration_buckets",
    "exponential_duration_buckets",
    "DEFAULT_BUCKETS",
]
