"""Delivery of run lifecycle callbacks to an external observer."""

import logging
import threading
from collections.abc import Sequence
from typing import Protocol

from live_test_runner.models.result import Report

log = logging.getLogger(__name__)


class RunObserver(Protocol):
    """Receives the lifecycle of a test run."""

    def start(self) -> None:
        """A pass over the queued tests begins."""
        ...

    def stop(self) -> None:
        """The pass is over."""
        ...

    def test_finished(self, report: Report) -> None:
        """A test unit produced its report."""
        ...


class SafeNotifier:
    """Forwards callbacks to an optional observer, never raising."""

    def __init__(self, observer: RunObserver | None = None) -> None:
        self.observer = observer

    def start(self) -> None:
        if self.observer is None:
            return
        try:
            self.observer.start()
        except Exception:
            log.warning("Run observer %r failed on start", self.observer, exc_info=True)

    def stop(self) -> None:
        if self.observer is None:
            return
        try:
            self.observer.stop()
        except Exception:
            log.warning("Run observer %r failed on stop", self.observer, exc_info=True)

    def test_finished(self, report: Report) -> None:
        if self.observer is None:
            return
        try:
            self.observer.test_finished(report)
        except Exception:
            log.warning(
                "Run observer %r failed on report of %s",
                self.observer,
                report.test_id,
                exc_info=True,
            )


class ReportCollector:
    """Observer keeping every report of the runs it watches."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reports: list[Report] = []
        self.passes_started = 0
        self.passes_stopped = 0

    @property
    def reports(self) -> Sequence[Report]:
        with self._lock:
            return list(self._reports)

    def start(self) -> None:
        self.passes_started += 1

    def stop(self) -> None:
        self.passes_stopped += 1

    def test_finished(self, report: Report) -> None:
        with self._lock:
            self._reports.append(report)
