from __future__ import annotations

"""Environment adapter for scopemetrics settings.

Consistent helpers to parse ``SCOPEMETRICS_*`` environment variables with
shared truthy semantics. Unset or blank variables fall back to the supplied
default; values that are present but unparsable raise ConfigError naming the
variable, so a typo in deployment config does not silently turn into a
default.
"""
import os
from collections.abc import Callable

from scopemetrics.utils.exceptions import ConfigError

ENV_PREFIX = "SCOPEMETRICS_"

TRUTHY_SET: set[str] = {"1", "true", "yes", "on", "y"}

def _raw(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()

def is_truthy(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY_SET

def get_str(name: str, default: str = "") -> str:
    v = os.getenv(name)
    if v is None:
        return default
    return v

def get_bool(name: str, default: bool = False) -> bool:
    v = _raw(name)
    if v is None:
        return default
    return is_truthy(v)

def get_int(name: str, default: int | None) -> int | None:
    v = _raw(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError as e:
        raise ConfigError(f"{name}={v!r} is not an integer") from e

def get_float(name: str, default: float | None) -> float | None:
    v = _raw(name)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError as e:
        raise ConfigError(f"{name}={v!r} is not a number") from e

def get_csv(name: str, default: list[str] | None = None, *, sep: str = ",", transform: Callable[[str], str] | None = None) -> list[str]:
    v = os.getenv(name)
    if v is None:
        return list(default or [])
    parts = [p.strip() for p in v.split(sep) if p.strip()]
    if transform:
        parts = [transform(p) for p in parts]
    return parts

def get_float_csv(name: str, default: list[float] | None = None) -> list[float] | None:
    if os.getenv(name) is None:
        return default
    out: list[float] = []
    for part in get_csv(name):
        try:
            out.append(float(part))
        except ValueError as e:
            raise ConfigError(f"{name} entry {part!r} is not a number") from e
    return out

def get_tags(name: str, default: dict[str, str] | None = None) -> dict[str, str] | None:
    """Parse ``k1=v1,k2=v2`` into a dict; later duplicates win."""
    if os.getenv(name) is None:
        return default
    tags: dict[str, str] = {}
    for part in get_csv(name):
        key, sep, value = part.partition("=")
        if not sep or not key.strip():
            raise ConfigError(f"{name} entry {part!r} is not key=value")
        tags[key.strip()] = value.strip()
    return tags

__all__ = [
    "ENV_PREFIX",
    "TRUTHY_SET",
    "is_truthy",
    "get_str",
    "get_bool",
    "get_int",
    "get_float",
    "get_csv",
    "get_float_csv",
    "get_tags",
]
