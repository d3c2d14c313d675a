"""Adapter running test classes through unittest."""

import time
import traceback
import unittest
from collections.abc import Sequence
from dataclasses import replace
from types import TracebackType
from typing import Protocol, TypeAlias

from live_test_runner.models.result import CaseResult, CaseStatus, StructuralResult

_ExcInfo: TypeAlias = tuple[type[BaseException], BaseException, TracebackType]


class TestEngine(Protocol):
    """Runs a test class, or a single method of it, and reports the outcome."""

    __test__ = False

    def run(
        self, test_class: type, method_name: str | None = None
    ) -> StructuralResult:
        """Run the tests of ``test_class``, blocking until they finish.

        Args:
            test_class: The test class to run
            method_name: Restrict the run to this test method

        Returns:
            Per-method outcomes and the elapsed time

        """
        ...


class UnittestEngine:
    """Runs ``unittest.TestCase`` classes in the calling thread."""

    def __init__(self, loader: unittest.TestLoader | None = None) -> None:
        self._loader = loader or unittest.TestLoader()

    def run(
        self, test_class: type, method_name: str | None = None
    ) -> StructuralResult:
        if method_name is None:
            suite = self._loader.loadTestsFromTestCase(test_class)
        else:
            suite = unittest.TestSuite([test_class(method_name)])

        result = _CollectingResult()
        started = time.perf_counter()
        suite.run(result)
        return StructuralResult(
            cases=result.cases, duration=time.perf_counter() - started
        )


class _CollectingResult(unittest.TestResult):
    """Records one CaseResult per test, keeping the worst outcome."""

    _SEVERITY: dict[CaseStatus, int] = {
        "success": 0,
        "skipped": 1,
        "failure": 2,
        "error": 3,
    }

    def __init__(self) -> None:
        super().__init__()
        self._cases: dict[str, CaseResult] = {}
        self._started: dict[str, float] = {}

    @property
    def cases(self) -> Sequence[CaseResult]:
        return list(self._cases.values())

    def startTest(self, test: unittest.TestCase) -> None:
        super().startTest(test)
        self._started[test.id()] = time.perf_counter()

    def stopTest(self, test: unittest.TestCase) -> None:
        super().stopTest(test)
        started = self._started.pop(test.id(), None)
        case = self._cases.get(test.id())
        if case is not None and started is not None:
            duration = time.perf_counter() - started
            self._cases[test.id()] = replace(case, duration=duration)

    def addSuccess(self, test: unittest.TestCase) -> None:
        super().addSuccess(test)
        self._record(test, "success")

    def addFailure(self, test: unittest.TestCase, err: _ExcInfo) -> None:
        super().addFailure(test, err)
        self._record(test, "failure", err)

    def addError(self, test: unittest.TestCase, err: _ExcInfo) -> None:
        super().addError(test, err)
        self._record(test, "error", err)

    def addSkip(self, test: unittest.TestCase, reason: str) -> None:
        super().addSkip(test, reason)
        self._record(test, "skipped", message=reason)

    def addExpectedFailure(self, test: unittest.TestCase, err: _ExcInfo) -> None:
        super().addExpectedFailure(test, err)
        self._record(test, "success")

    def addUnexpectedSuccess(self, test: unittest.TestCase) -> None:
        super().addUnexpectedSuccess(test)
        self._record(test, "failure", message="Unexpected success")

    def addSubTest(
        self,
        test: unittest.TestCase,
        subtest: unittest.TestCase,
        err: _ExcInfo | None,
    ) -> None:
        super().addSubTest(test, subtest, err)
        if err is not None:
            status: CaseStatus = (
                "failure" if issubclass(err[0], test.failureException) else "error"
            )
            self._record(test, status, err)

    def _record(
        self,
        test: unittest.TestCase,
        status: CaseStatus,
        err: _ExcInfo | None = None,
        message: str | None = None,
    ) -> None:
        previous = self._cases.get(test.id())
        if previous and self._SEVERITY[previous.status] >= self._SEVERITY[status]:
            return

        error_type = trace = None
        if err is not None:
            exc_type, exc_value, tb = err
            message = str(exc_value) or exc_type.__name__
            error_type = f"{exc_type.__module__}.{exc_type.__qualname__}"
            trace = "".join(traceback.format_exception(exc_type, exc_value, tb))

        # class and module fixture errors arrive as placeholders without a
        # test method of their own
        method_name = getattr(test, "_testMethodName", None)
        test_class = type(test) if method_name is not None else None
        class_name = (
            f"{test_class.__module__}.{test_class.__qualname__}"
            if test_class is not None
            else str(test)
        )

        self._cases[test.id()] = CaseResult(
            class_name=class_name,
            method_name=method_name,
            status=status,
            duration=previous.duration if previous else 0.0,
            message=message,
            error_type=error_type,
            trace=trace,
            test_class=test_class,
        )
