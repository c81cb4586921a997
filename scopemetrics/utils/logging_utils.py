"""Unified logging utilities for scopemetrics.

The library itself only ever calls ``logging.getLogger(__name__)``; this
module is the opt-in helper applications use to get readable (or JSON)
output from it without writing their own handler wiring.
"""
from __future__ import annotations

import json
import logging
import sys
import threading

from scopemetrics.config.env_adapter import get_bool

DEFAULT_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'

class JsonFormatter(logging.Formatter):
    """One JSON object per record; extra= fields are merged when serializable."""

    _RESERVED = frozenset(vars(logging.LogRecord('', 0, '', 0, '', (), None)).keys()) | {'message', 'asctime'}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            'ts': record.created,
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'msg': record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in self._RESERVED or key.startswith('_'):
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = repr(value)
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class ErrorOnce:
    """Log a warning the first time a key is seen, debug afterwards.

    Report ticks run every few seconds; a backend that is down would
    otherwise emit the same traceback on every tick.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def log(self, key: str, msg: str, *args, exc_info: bool = False) -> bool:
        with self._lock:
            first = key not in self._seen
            self._seen.add(key)
        if first:
            self._logger.warning(msg, *args, exc_info=exc_info)
        else:
            self._logger.debug(msg, *args, exc_info=exc_info)
        return first

    def reset(self) -> None:
        with self._lock:
            self._seen.clear()


def setup_logging(level: str = 'INFO', log_file: str | None = None, *, json_logs: bool | None = None, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Configure root logging.

    Console handler uses ``fmt`` unless JSON output is requested, either
    explicitly or through ``SCOPEMETRICS_JSON_LOGS``. The file handler, when
    ``log_file`` is given, always uses the plain ``fmt`` for diagnostics.
    Existing root handlers are removed so repeated calls do not duplicate output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()

    if json_logs is None:
        json_logs = get_bool('SCOPEMETRICS_JSON_LOGS')

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    console.setFormatter(JsonFormatter() if json_logs else logging.Formatter(fmt))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(file_handler)

    return root

__all__ = ["DEFAULT_FORMAT", "JsonFormatter", "ErrorOnce", "setup_logging"]
