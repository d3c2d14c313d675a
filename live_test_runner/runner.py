"""Test runner executing registry tests once or continuously."""

import enum
import logging
import threading
import time
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from live_test_runner.config import RunnerConfig
from live_test_runner.execution.engine import TestEngine, UnittestEngine
from live_test_runner.execution.pipeline import ExecutionPipeline
from live_test_runner.execution.reporting import XmlReportWriter
from live_test_runner.filtering import TestFilter
from live_test_runner.notifier import RunObserver, SafeNotifier
from live_test_runner.registry.base import RegistryListener, TestRegistry
from live_test_runner.registry.inspector import (
    NamingConventionInspector,
    TestClassInspector,
)
from live_test_runner.work_queue import WorkQueue

log = logging.getLogger(__name__)

THREAD_NAME = "TestRunner-executor"


class RunnerState(enum.Enum):
    """Lifecycle states of a :class:`TestRunner`."""

    IDLE = "idle"
    RUNNING_ONCE = "running-once"
    RUNNING_CONTINUOUS = "running-continuous"
    STOPPING = "stopping"


class TestRunner:
    """Runs the tests of a registry on a single background thread.

    Started with explicit test ids it runs those tests once and goes back to
    idle. Started without ids it follows the registry: every ``interval``
    seconds it drains whatever tests were queued since the last tick, until
    :meth:`stop` is called.

    Stopping is cooperative. The flag is checked before each test unit is
    taken from the queue, so a test already running completes and still
    writes its report.
    """

    __test__ = False

    def __init__(
        self,
        config: RunnerConfig | None = None,
        *,
        engine: TestEngine | None = None,
        inspector: TestClassInspector | None = None,
    ) -> None:
        self.config = config or RunnerConfig()
        self.engine = engine or UnittestEngine()
        self.inspector = inspector or NamingConventionInspector()
        self.test_filter = TestFilter(
            self.config.include_patterns, self.config.exclude_patterns
        )
        self.rerun_count = self.config.rerun_count

        self._lock = threading.Lock()
        self._state = RunnerState.IDLE
        self._registry: TestRegistry | None = None
        self._subscription: tuple[TestRegistry, RegistryListener] | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._test_count = 0

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def registry(self) -> TestRegistry | None:
        return self._registry

    @property
    def test_count(self) -> int:
        """Tests left in the current pass, for monitoring only."""
        return self._test_count

    def is_running(self) -> bool:
        return self._state in (
            RunnerState.RUNNING_ONCE,
            RunnerState.RUNNING_CONTINUOUS,
        )

    def is_stopped(self) -> bool:
        """True when idle or when a stop has been requested."""
        return not self.is_running()

    def bind_registry(
        self, registry: TestRegistry, properties: Mapping[str, Any] | None = None
    ) -> bool:
        """Make ``registry`` the one this runner executes tests from.

        Without properties the registry is always bound. With properties it
        is bound only if its ``discovery`` mode is the configured one, so
        several registries can be offered while only one becomes active.
        """
        if properties is not None:
            discovery = properties.get("discovery")
            if discovery != self.config.registry_mode:
                log.debug(
                    "Ignore registry %r: discovery=%s, expected %s",
                    registry,
                    discovery,
                    self.config.registry_mode,
                )
                return False

        with self._lock:
            self._registry = registry
        log.info("Bound test registry %s", type(registry).__name__)
        return True

    def unbind_registry(self, registry: TestRegistry) -> None:
        """Forget ``registry`` if it is the bound one."""
        with self._lock:
            if self._registry is registry:
                self._registry = None

    def start(
        self,
        test_ids: Iterable[str] | None = None,
        reports_path: Path | str | None = None,
        observer: RunObserver | None = None,
    ) -> bool:
        """Start a run unless one is already active.

        Args:
            test_ids: Ids of the tests to run once; None runs continuously
            reports_path: Directory for the XML reports, defaults to config
            observer: Receives the run lifecycle callbacks

        Returns:
            True if a run was started

        """
        with self._lock:
            registry = self._registry
            if registry is None:
                log.warning("No test registry bound, nothing to run")
                return False
            if self._state is not RunnerState.IDLE:
                log.info("Runner is already %s", self._state.value)
                return False

            reports_dir = Path(reports_path or self.config.reports_path)
            continuous = test_ids is None
            if continuous:
                queue = WorkQueue(test_filter=self.test_filter)
                registry.add_listener(queue.registry_changed, replay=True)
                self._subscription = (registry, queue.registry_changed)
                self._state = RunnerState.RUNNING_CONTINUOUS
            else:
                queue = WorkQueue(registry.get_by_ids(test_ids))
                self._state = RunnerState.RUNNING_ONCE

            pipeline = ExecutionPipeline(
                engine=self.engine,
                inspector=self.inspector,
                writer=XmlReportWriter(reports_dir),
                rerun_count=self.rerun_count,
            )
            self._stop_event = stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._work,
                args=(queue, pipeline, SafeNotifier(observer), stop_event, continuous),
                name=THREAD_NAME,
                daemon=True,
            )
            self._thread.start()

        log.info(
            "Test runner started (%s, %d test(s) queued, reports in %s)",
            "continuous" if continuous else "once",
            len(queue),
            reports_dir,
        )
        return True

    def start_matching(
        self,
        include_patterns: str | Iterable[str] | None = None,
        exclude_patterns: str | Iterable[str] | None = None,
        reports_path: Path | str | None = None,
        observer: RunObserver | None = None,
    ) -> bool:
        """Run once every registered test whose name matches the patterns."""
        registry = self._registry
        if registry is None:
            log.warning("No test registry bound, nothing to run")
            return False

        test_filter = TestFilter(include_patterns, exclude_patterns)
        test_ids = [
            unit.id for unit in registry.get_all() if test_filter.accept(unit.name)
        ]
        return self.start(test_ids, reports_path, observer)

    def stop(self) -> None:
        """Request the active run to stop after the test currently running."""
        with self._lock:
            self._stop_event.set()
            self._unsubscribe()
            if self.is_running():
                self._state = RunnerState.STOPPING
                log.info("Test runner stopping")

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the worker thread to end; True if it did."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def accept(self, test_class: type) -> bool:
        """Whether the configured filter accepts the class."""
        name = f"{test_class.__module__}.{test_class.__qualname__}"
        return self.test_filter.accept(name)

    def activate(self) -> None:
        """Start continuous mode when autostart is configured."""
        if self.config.autostart:
            self.start()

    def deactivate(self) -> None:
        self.stop()

    def dispose(self) -> None:
        """Stop and drop every test of the bound registry."""
        self.stop()
        if self._registry is not None:
            self._registry.dispose()

    def _unsubscribe(self) -> None:
        if self._subscription is not None:
            registry, listener = self._subscription
            self._subscription = None
            registry.remove_listener(listener)

    def _work(
        self,
        queue: WorkQueue,
        pipeline: ExecutionPipeline,
        notifier: SafeNotifier,
        stop_event: threading.Event,
        continuous: bool,
    ) -> None:
        try:
            if not continuous:
                self._run_pass(queue, pipeline, notifier, stop_event)
                return

            # fixed rate; an overrunning tick delays the next one instead of
            # triggering a burst of catch-up ticks
            next_tick = time.monotonic()
            while not stop_event.is_set():
                self._run_pass(queue, pipeline, notifier, stop_event)
                next_tick = max(next_tick + self.config.interval, time.monotonic())
                stop_event.wait(next_tick - time.monotonic())
        except Exception:
            log.exception("Test runner failed")
        finally:
            with self._lock:
                self._unsubscribe()
                self._state = RunnerState.IDLE
            log.info("Test runner is idle")

    def _run_pass(
        self,
        queue: WorkQueue,
        pipeline: ExecutionPipeline,
        notifier: SafeNotifier,
        stop_event: threading.Event,
    ) -> None:
        if not queue:
            self._test_count = 0
            return

        notifier.start()
        try:
            while not stop_event.is_set() and (unit := queue.poll()) is not None:
                self._test_count = len(queue)
                try:
                    report = pipeline.execute(unit)
                except Exception:
                    log.exception("Unexpected failure while running %s", unit.id)
                    continue
                if report is not None:
                    notifier.test_finished(report)

            if stop_event.is_set():
                log.info("Test run stopped, %d test(s) left in the queue", len(queue))
            else:
                log.info("All tests in the queue have been processed")
        finally:
            notifier.stop()
