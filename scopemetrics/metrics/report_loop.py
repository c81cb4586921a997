"""Periodic report loop for a root scope tree.

One daemon thread per tree calls the report callback every ``interval``
seconds (fixed delay: the wait starts after a tick completes). Instrumentation
threads never interact with it.

Stopping is synchronous: ``stop()`` wakes the thread and joins it, so once it
returns no tick is running and none will start. The caller can then do its own
final report without racing the loop.

A tick that raises is logged (warning the first time per exception type,
debug afterwards) and the loop keeps going; a broken backend must not end
periodic reporting for the rest of the process.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from scopemetrics.utils.logging_utils import ErrorOnce

logger = logging.getLogger(__name__)


class ReportLoop:
    def __init__(self, interval: float, *, name: str = "scopemetrics-report"):
        if interval <= 0:
            raise ValueError(f"report interval must be positive, got {interval}")
        self.interval = interval
        self._name = name
        self._report: Callable[[], None] | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._error_once = ErrorOnce(logger)
        self.ticks = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        t = self._thread
        return t is not None and t.is_alive()

    def start(self, report: Callable[[], None]) -> None:
        with self._lock:
            if self._thread is not None:
                return
            if self._stop_event.is_set():
                raise RuntimeError("report loop already stopped")
            self._report = report
            t = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread = t
            t.start()
        logger.debug("report_loop.started interval=%.3fs thread=%s", self.interval, self._name)

    def _run(self) -> None:
        # wait() returns True once stop() sets the event
        while not self._stop_event.wait(self.interval):
            self.run_once()

    def run_once(self) -> bool:
        """Execute one tick; returns False if the callback raised."""
        report = self._report
        if report is None:
            return False
        try:
            report()
        except Exception as e:  # noqa: BLE001 - keep the loop alive
            self.failures += 1
            self._error_once.log(
                f"tick:{type(e).__name__}",
                "report_loop.tick_failed err=%s", e, exc_info=True,
            )
            return False
        self.ticks += 1
        return True

    def stop(self, timeout: float | None = None) -> None:
        """Prevent further ticks and wait for an in-flight tick to finish."""
        self._stop_event.set()
        t = self._thread
        if t is None or t is threading.current_thread():
            return
        t.join(timeout)
        if t.is_alive():
            logger.warning("report_loop.stop_timeout thread=%s timeout=%s", self._name, timeout)
        else:
            logger.debug("report_loop.stopped ticks=%d failures=%d", self.ticks, self.failures)


__all__ = ["ReportLoop"]
