"""Declarative root-scope settings.

Settings come from an optional JSON file validated against ``SETTINGS_SCHEMA``
(jsonschema draft-07), then ``SCOPEMETRICS_*`` environment variables override
individual fields::

    SCOPEMETRICS_PREFIX=svc
    SCOPEMETRICS_TAGS=env=prod,region=eu
    SCOPEMETRICS_REPORT_INTERVAL_SECONDS=10
    SCOPEMETRICS_REPORTER=prometheus
    SCOPEMETRICS_PROMETHEUS_PORT=9108

Both schema violations and unparsable environment values raise ConfigError.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema

from scopemetrics.config import env_adapter as env
from scopemetrics.utils.exceptions import ConfigError

logger = logging.getLogger(__name__)

REPORTER_CHOICES = ("none", "logging", "prometheus")

SETTINGS_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "prefix": {"type": "string"},
        "separator": {"type": "string", "minLength": 1},
        "tags": {
            "type": "object",
            "additionalProperties": {"type": ["string", "number", "boolean"]},
        },
        "report_interval": {"type": ["number", "null"], "exclusiveMinimum": 0},
        "default_buckets": {
            "type": ["array", "null"],
            "items": {"type": "number"},
        },
        "reporter": {"enum": list(REPORTER_CHOICES)},
        "prometheus_port": {"type": ["integer", "null"], "minimum": 0, "maximum": 65535},
        "prometheus_addr": {"type": "string"},
    },
    "additionalProperties": False,
}


@dataclass(frozen=True)
class ScopeSettings:
    prefix: str = ""
    separator: str = "."
    tags: dict[str, str] = field(default_factory=dict)
    report_interval: float | None = None
    default_buckets: tuple[float, ...] | None = None
    reporter: str = "none"
    prometheus_port: int | None = None
    prometheus_addr: str = "0.0.0.0"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScopeSettings:
        validate_settings(data)
        buckets = data.get("default_buckets")
        return cls(
            prefix=data.get("prefix", ""),
            separator=data.get("separator", "."),
            tags={str(k): str(v) for k, v in (data.get("tags") or {}).items()},
            report_interval=data.get("report_interval"),
            default_buckets=tuple(float(b) for b in buckets) if buckets is not None else None,
            reporter=data.get("reporter", "none"),
            prometheus_port=data.get("prometheus_port"),
            prometheus_addr=data.get("prometheus_addr", "0.0.0.0"),
        )


def validate_settings(data: Any) -> None:
    try:
        jsonschema.validate(instance=data, schema=SETTINGS_SCHEMA)
    except jsonschema.ValidationError as e:
        path = "/".join(str(p) for p in e.path) or "<root>"
        raise ConfigError(f"settings validation error: {e.message} (path: {path})") from e


def _read_file(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError as e:
        raise ConfigError(f"settings file not found: {p}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"settings file {p} is not valid JSON: {e}") from e


def apply_env_overrides(settings: ScopeSettings) -> ScopeSettings:
    """Return settings with any ``SCOPEMETRICS_*`` variables applied on top."""
    p = env.ENV_PREFIX
    overrides: dict[str, Any] = {}
    prefix = env.get_str(p + "PREFIX", settings.prefix)
    if prefix != settings.prefix:
        overrides["prefix"] = prefix
    separator = env.get_str(p + "SEPARATOR", settings.separator)
    if separator != settings.separator:
        if not separator:
            raise ConfigError(f"{p}SEPARATOR must not be empty")
        overrides["separator"] = separator
    tags = env.get_tags(p + "TAGS")
    if tags is not None:
        overrides["tags"] = {**settings.tags, **tags}
    interval = env.get_float(p + "REPORT_INTERVAL_SECONDS", None)
    if interval is not None:
        if interval <= 0:
            raise ConfigError(f"{p}REPORT_INTERVAL_SECONDS must be positive, got {interval}")
        overrides["report_interval"] = interval
    buckets = env.get_float_csv(p + "DEFAULT_BUCKETS")
    if buckets is not None:
        overrides["default_buckets"] = tuple(buckets)
    reporter = env.get_str(p + "REPORTER", "").strip().lower()
    if reporter:
        if reporter not in REPORTER_CHOICES:
            raise ConfigError(f"{p}REPORTER={reporter!r} not one of {', '.join(REPORTER_CHOICES)}")
        overrides["reporter"] = reporter
    port = env.get_int(p + "PROMETHEUS_PORT", None)
    if port is not None:
        overrides["prometheus_port"] = port
    addr = env.get_str(p + "PROMETHEUS_ADDR", "").strip()
    if addr:
        overrides["prometheus_addr"] = addr
    if overrides:
        logger.debug("settings.env_overrides keys=%s", ",".join(sorted(overrides)))
        return replace(settings, **overrides)
    return settings


def load_settings(path: str | Path | None = None) -> ScopeSettings:
    """Load settings from ``path`` (JSON, optional) plus environment overrides."""
    if path is not None:
        settings = ScopeSettings.from_dict(_read_file(path))
    else:
        settings = ScopeSettings()
    return apply_env_overrides(settings)


__all__ = [
    "REPORTER_CHOICES",
    "SETTINGS_SCHEMA",
    "ScopeSettings",
    "validate_settings",
    "apply_env_overrides",
    "load_settings",
]
