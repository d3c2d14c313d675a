"""Models for test execution results."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal, TypeAlias

CaseStatus: TypeAlias = Literal["success", "failure", "error", "skipped"]

FAILED_STATUSES: frozenset[CaseStatus] = frozenset({"failure", "error"})


@dataclass(frozen=True, kw_only=True)
class CaseResult:
    """Outcome of a single test method.

    ``method_name`` is None for class level problems, e.g. an error raised
    from ``setUpClass``, which cannot be rerun on their own.
    """

    class_name: str
    method_name: str | None
    status: CaseStatus
    duration: float
    message: str | None = None
    error_type: str | None = None
    trace: str | None = None
    reruns: int = 0
    test_class: type | None = field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        """Display name of the case."""
        return self.method_name or self.class_name

    @property
    def failed(self) -> bool:
        """Whether the case ended in a failure or an error."""
        return self.status in FAILED_STATUSES


@dataclass(frozen=True, kw_only=True)
class StructuralResult:
    """Everything one engine run of a test class produced."""

    cases: Sequence[CaseResult] = ()
    duration: float = 0.0

    @property
    def run_count(self) -> int:
        return len(self.cases)

    @property
    def failure_count(self) -> int:
        return sum(1 for case in self.cases if case.status == "failure")

    @property
    def error_count(self) -> int:
        return sum(1 for case in self.cases if case.status == "error")

    @property
    def skip_count(self) -> int:
        return sum(1 for case in self.cases if case.status == "skipped")

    @property
    def failures(self) -> Sequence[CaseResult]:
        return [case for case in self.cases if case.failed]

    @property
    def was_successful(self) -> bool:
        return not self.failures


@dataclass(frozen=True, kw_only=True)
class Report:
    """Final outcome of executing one test unit.

    Exactly one report is produced per unit and pass, even when failed
    methods were rerun.
    """

    test_id: str
    name: str
    component_id: str
    status: CaseStatus
    duration_millis: int
    failure_messages: Sequence[str] = ()
    cases: Sequence[CaseResult] = ()

    @property
    def tests(self) -> int:
        return len(self.cases)

    @property
    def failures(self) -> int:
        return sum(1 for case in self.cases if case.status == "failure")

    @property
    def errors(self) -> int:
        return sum(1 for case in self.cases if case.status == "error")

    @property
    def skipped(self) -> int:
        return sum(1 for case in self.cases if case.status == "skipped")


def aggregate_status(cases: Sequence[CaseResult]) -> CaseStatus:
    """Collapse per-case statuses into a single report status."""
    statuses = {case.status for case in cases}
    if "error" in statuses:
        return "error"
    if "failure" in statuses:
        return "failure"
    if statuses == {"skipped"}:
        return "skipped"
    return "success"
