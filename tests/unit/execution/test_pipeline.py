"""Tests for the execution pipeline."""

import logging
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest.mock import Mock, call

import pytest

from live_test_runner.execution.engine import TestEngine, UnittestEngine
from live_test_runner.execution.pipeline import ExecutionPipeline, build_report
from live_test_runner.execution.reporting import ReportWriter, XmlReportWriter
from live_test_runner.models.result import StructuralResult
from live_test_runner.models.unit import TestClassNotFoundError, TestUnit
from live_test_runner.registry.inspector import NamingConventionInspector
from live_test_runner.testing.factories import CaseResultFactory
from live_test_runner.testing.registry import unit_for
from live_test_runner.testing.samples import (
    abstract_case,
    class_setup_error_case,
    failing_case,
    flaky_case,
    passing_case,
)


@pytest.fixture
def engine_mock() -> Mock:
    """Create mock engine."""
    return Mock(spec=TestEngine)


@pytest.fixture
def writer_mock() -> Mock:
    """Create mock report writer."""
    return Mock(spec=ReportWriter)


def make_pipeline(
    engine: TestEngine, writer: ReportWriter | None = None, rerun_count: int = 0
) -> ExecutionPipeline:
    return ExecutionPipeline(
        engine=engine,
        inspector=NamingConventionInspector(),
        writer=writer,
        rerun_count=rerun_count,
    )


class TestExecute:
    """Tests for execute method."""

    def test_reports_successful_unit(self, writer_mock: Mock) -> None:
        """A passing class yields one written success report."""
        unit = unit_for("comp.a", passing_case(), "com.x.FooTest")
        pipeline = make_pipeline(UnittestEngine(), writer_mock)

        report = pipeline.execute(unit)

        assert report is not None
        assert report.test_id == "comp.a@com.x.FooTest"
        assert report.component_id == "comp.a"
        assert report.status == "success"
        assert report.tests == 2
        assert report.failure_messages == []
        writer_mock.write.assert_called_once_with(report)

    def test_reports_failures(self) -> None:
        """Failed and errored methods are listed in the report."""
        unit = unit_for("comp.a", failing_case(), "com.x.BrokenTest")

        report = make_pipeline(UnittestEngine()).execute(unit)

        assert report is not None
        assert report.status == "error"
        assert report.failures == 1
        assert report.errors == 1
        assert sorted(report.failure_messages) == [
            "test_errors: boom",
            "test_fails: always broken",
        ]

    def test_skips_unloadable_class(
        self,
        engine_mock: Mock,
        writer_mock: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Classes that cannot be loaded produce no report."""
        unit = TestUnit(
            component_id="comp.a",
            name="com.x.GoneTest",
            resolver=Mock(side_effect=TestClassNotFoundError("gone")),
        )

        with caplog.at_level(logging.ERROR):
            report = make_pipeline(engine_mock, writer_mock).execute(unit)

        assert report is None
        assert "Cannot load class comp.a@com.x.GoneTest" in caplog.text
        engine_mock.run.assert_not_called()
        writer_mock.write.assert_not_called()

    def test_skips_non_runnable_class(
        self, engine_mock: Mock, writer_mock: Mock
    ) -> None:
        """Abstract classes are silently skipped."""
        unit = unit_for("comp.a", abstract_case(), "com.x.AbstractTest")

        report = make_pipeline(engine_mock, writer_mock).execute(unit)

        assert report is None
        engine_mock.run.assert_not_called()
        writer_mock.write.assert_not_called()

    def test_engine_failure_becomes_error_report(
        self, engine_mock: Mock, writer_mock: Mock
    ) -> None:
        """An exception from the engine is reported, not propagated."""
        engine_mock.run.side_effect = RuntimeError("engine crashed")
        unit = unit_for("comp.a", passing_case(), "com.x.FooTest")

        report = make_pipeline(engine_mock, writer_mock).execute(unit)

        assert report is not None
        assert report.status == "error"
        assert report.failure_messages == ["engine crashed"]
        assert report.cases[0].error_type == "builtins.RuntimeError"
        writer_mock.write.assert_called_once_with(report)

    def test_write_failure_is_logged(
        self, writer_mock: Mock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A report that cannot be written is still returned."""
        writer_mock.write.side_effect = PermissionError("read-only")
        unit = unit_for("comp.a", passing_case(), "com.x.FooTest")

        with caplog.at_level(logging.ERROR):
            report = make_pipeline(UnittestEngine(), writer_mock).execute(unit)

        assert report is not None
        assert report.status == "success"
        assert "Cannot write report for comp.a@com.x.FooTest" in caplog.text

    def test_writes_xml_file(self, tmp_path: Path) -> None:
        """With the XML writer a surefire file is produced."""
        unit = unit_for("comp.a", passing_case(), "com.x.FooTest")

        make_pipeline(UnittestEngine(), XmlReportWriter(tmp_path)).execute(unit)

        assert (tmp_path / "TEST-com.x.FooTest.xml").is_file()

    def test_undecodable_failure_message_stays_parseable(
        self, tmp_path: Path
    ) -> None:
        """A failure quoting undecodable bytes still yields a readable file."""
        path = b"/tmp/\xff".decode("utf-8", "surrogateescape")

        class PathTest(unittest.TestCase):
            def test_opens(self) -> None:
                self.fail(f"\x1b[31mcannot open {path}\x1b[0m")

        unit = unit_for("comp.a", PathTest, "com.x.PathTest")

        make_pipeline(UnittestEngine(), XmlReportWriter(tmp_path)).execute(unit)

        suite = ET.parse(tmp_path / "TEST-com.x.PathTest.xml").getroot()
        failure = suite.find("testcase/failure")
        assert failure is not None
        assert failure.get("message") == "cannot open /tmp/\ufffd"


class TestReruns:
    """Tests for rerunning failed methods."""

    def test_reruns_failed_method_until_it_passes(self, engine_mock: Mock) -> None:
        """A method failing once passes on its first rerun."""
        test_class = passing_case()
        failed = CaseResultFactory.build(
            class_name="com.x.FooTest",
            method_name="test_one",
            status="failure",
            duration=1.5,
            message="flaked",
            test_class=test_class,
        )
        passed = CaseResultFactory.build(
            class_name="com.x.FooTest",
            method_name="test_two",
            status="success",
            duration=0.5,
            test_class=test_class,
        )
        engine_mock.run.side_effect = [
            StructuralResult(cases=[failed, passed], duration=2.0),
            StructuralResult(
                cases=[CaseResultFactory.build(method_name="test_one", duration=9.0)],
                duration=9.0,
            ),
        ]
        unit = unit_for("comp.a", test_class, "com.x.FooTest")

        report = make_pipeline(engine_mock, rerun_count=2).execute(unit)

        assert engine_mock.run.call_args_list == [
            call(test_class),
            call(test_class, "test_one"),
        ]
        assert report is not None
        assert report.status == "success"
        assert report.tests == 2
        assert report.duration_millis == 2000
        assert report.failure_messages == []
        rerun_case = report.cases[0]
        assert rerun_case.status == "success"
        assert rerun_case.reruns == 1
        assert rerun_case.duration == 1.5

    def test_stops_after_rerun_count_attempts(self, engine_mock: Mock) -> None:
        """A method that keeps failing is run 1 + rerun_count times."""
        test_class = passing_case()
        failed = CaseResultFactory.build(
            method_name="test_one",
            status="failure",
            message="still broken",
            test_class=test_class,
        )
        engine_mock.run.return_value = StructuralResult(cases=[failed], duration=1.0)
        unit = unit_for("comp.a", test_class, "com.x.FooTest")

        report = make_pipeline(engine_mock, rerun_count=2).execute(unit)

        assert engine_mock.run.call_count == 3
        assert report is not None
        assert report.status == "failure"
        assert report.cases[0].reruns == 2
        assert report.failure_messages == ["test_one: still broken"]

    def test_no_reruns_by_default(self, engine_mock: Mock) -> None:
        """With a rerun count of zero failures are reported as is."""
        failed = CaseResultFactory.build(
            method_name="test_one", status="failure", test_class=passing_case()
        )
        engine_mock.run.return_value = StructuralResult(cases=[failed], duration=1.0)
        unit = unit_for("comp.a", passing_case(), "com.x.FooTest")

        report = make_pipeline(engine_mock).execute(unit)

        assert engine_mock.run.call_count == 1
        assert report is not None
        assert report.status == "failure"

    def test_flaky_method_recovers(self) -> None:
        """Only the flaky method is rerun with the real engine."""
        test_class = flaky_case(failures=2)
        unit = unit_for("comp.a", test_class, "com.x.FlakyTest")

        report = make_pipeline(UnittestEngine(), rerun_count=2).execute(unit)

        assert report is not None
        assert report.status == "success"
        assert report.tests == 2
        assert test_class.attempt_count == 3
        reruns = {case.method_name: case.reruns for case in report.cases}
        assert reruns == {"test_flaky": 2, "test_stable": 0}

    def test_class_level_error_is_not_rerun(self) -> None:
        """Errors without a method cannot be rerun and stay errors."""
        unit = unit_for("comp.a", class_setup_error_case(), "com.x.BrokenSetUpTest")

        report = make_pipeline(UnittestEngine(), rerun_count=3).execute(unit)

        assert report is not None
        assert report.status == "error"
        assert report.cases[0].reruns == 0


def test_build_report_aggregates_status() -> None:
    """Report status is the worst case status."""
    unit = unit_for("comp.a", passing_case(), "com.x.FooTest")
    result = StructuralResult(
        cases=[
            CaseResultFactory.build(status="success"),
            CaseResultFactory.build(status="skipped"),
            CaseResultFactory.build(method_name="test_x", status="failure"),
        ],
        duration=0.25,
    )

    report = build_report(unit, result)

    assert report.status == "failure"
    assert report.duration_millis == 250
    assert report.failure_messages == ["test_x"]
