"""Execution of a single test unit, including reruns of failed methods."""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, replace

from live_test_runner.execution.engine import TestEngine
from live_test_runner.execution.reporting import ReportWriter
from live_test_runner.models.result import (
    CaseResult,
    Report,
    StructuralResult,
    aggregate_status,
)
from live_test_runner.models.unit import TestClassNotFoundError, TestUnit
from live_test_runner.registry.inspector import TestClassInspector

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class ExecutionPipeline:
    """Runs one test unit and turns the outcome into a single report."""

    engine: TestEngine
    inspector: TestClassInspector
    writer: ReportWriter | None = None
    rerun_count: int = 0

    def execute(self, unit: TestUnit) -> Report | None:
        """Execute a test unit.

        Args:
            unit: The test unit to execute

        Returns:
            The persisted report, or None when the unit was not executed
            because its class could not be loaded or is not runnable

        """
        try:
            test_class = unit.load_class()
        except TestClassNotFoundError:
            log.error("Cannot load class %s", unit.id, exc_info=True)
            return None

        if not self.inspector.is_runnable(test_class):
            log.debug("Skip class %s", unit.name)
            return None

        log.info("Running test %s", unit.id)
        started = time.perf_counter()
        try:
            result = self.engine.run(test_class)
            if self.rerun_count > 0 and not result.was_successful:
                result = self.rerun_failures(result)
            report = build_report(unit, result)
        except Exception as e:
            log.error("Test execution failed for %s: %s", unit.id, e, exc_info=e)
            report = error_report(unit, e, time.perf_counter() - started)

        if self.writer is not None:
            try:
                self.writer.write(report)
            except OSError:
                log.error("Cannot write report for %s", unit.id, exc_info=True)
        return report

    def rerun_failures(self, result: StructuralResult) -> StructuralResult:
        """Rerun each failed method until it passes or attempts run out.

        Only the status of rerun methods changes; the number of tests and the
        timings stay those of the original run.
        """
        cases: list[CaseResult] = []
        for case in result.cases:
            if not case.failed:
                cases.append(case)
                continue
            if case.test_class is None or case.method_name is None:
                log.info("Skip rerun of test: %s", case.name)
                cases.append(case)
                continue
            cases.append(self._rerun_case(case, case.test_class, case.method_name))

        return replace(result, cases=cases)

    def _rerun_case(
        self, case: CaseResult, test_class: type, method_name: str
    ) -> CaseResult:
        latest = case
        attempts = 0
        while attempts < self.rerun_count and latest.failed:
            attempts += 1
            log.info(
                "Rerun %d/%d of %s.%s",
                attempts,
                self.rerun_count,
                case.class_name,
                method_name,
            )
            rerun = self.engine.run(test_class, method_name)
            latest = _find_case(rerun.cases, case) or latest

        return replace(latest, duration=case.duration, reruns=attempts)


def _find_case(cases: Sequence[CaseResult], wanted: CaseResult) -> CaseResult | None:
    for case in cases:
        if case.method_name == wanted.method_name:
            return case
    return None


def build_report(unit: TestUnit, result: StructuralResult) -> Report:
    """Build the report of a unit from its (possibly merged) result."""
    return Report(
        test_id=unit.id,
        name=unit.name,
        component_id=unit.component_id,
        status=aggregate_status(result.cases),
        duration_millis=round(result.duration * 1000),
        failure_messages=[
            f"{case.name}: {case.message}" if case.message else case.name
            for case in result.failures
        ],
        cases=result.cases,
    )


def error_report(unit: TestUnit, error: BaseException, duration: float) -> Report:
    """Report for a unit whose execution itself blew up."""
    return Report(
        test_id=unit.id,
        name=unit.name,
        component_id=unit.component_id,
        status="error",
        duration_millis=round(duration * 1000),
        failure_messages=[str(error) or type(error).__name__],
        cases=[
            CaseResult(
                class_name=unit.name,
                method_name=None,
                status="error",
                duration=duration,
                message=str(error) or type(error).__name__,
                error_type=f"{type(error).__module__}.{type(error).__qualname__}",
            )
        ],
    )
