"""Immutable point-in-time capture of a scope tree.

Built fresh by ``Scope.snapshot()``. Reading a snapshot never touches
reporting state: counters show their pending (not yet reported) delta without
consuming it, so two snapshots in a row with no recording in between are
equal.

Mappings are exposed as ``MappingProxyType`` views and sequences as tuples;
attempts to mutate them raise TypeError.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .tags import TagSet


def _frozen(mapping: Mapping | None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class CounterSnapshot:
    name: str
    tags: TagSet
    value: float


@dataclass(frozen=True)
class GaugeSnapshot:
    name: str
    tags: TagSet
    value: float


@dataclass(frozen=True)
class TimerSnapshot:
    name: str
    tags: TagSet
    values: tuple[float, ...]


@dataclass(frozen=True)
class HistogramSnapshot:
    name: str
    tags: TagSet
    values: Mapping[float, float]
    durations: Mapping[float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _frozen(self.values))
        object.__setattr__(self, "durations", _frozen(self.durations))


@dataclass(frozen=True)
class Snapshot:
    """Leaf records keyed by identity string (canonical key of name + tags)."""
    counters: Mapping[str, CounterSnapshot]
    gauges: Mapping[str, GaugeSnapshot]
    timers: Mapping[str, TimerSnapshot]
    histograms: Mapping[str, HistogramSnapshot]

    def __post_init__(self) -> None:
        for field_name in ("counters", "gauges", "timers", "histograms"):
            object.__setattr__(self, field_name, _frozen(getattr(self, field_name)))

    def __len__(self) -> int:
        return len(self.counters) + len(self.gauges) + len(self.timers) + len(self.histograms)


__all__ = [
    "CounterSnapshot",
    "GaugeSnapshot",
    "TimerSnapshot",
    "HistogramSnapshot",
    "Snapshot",
]
