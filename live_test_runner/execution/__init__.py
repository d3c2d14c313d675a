"""Execution of test units and persistence of their reports."""

from live_test_runner.execution.engine import TestEngine, UnittestEngine
from live_test_runner.execution.pipeline import ExecutionPipeline
from live_test_runner.execution.reporting import ReportWriter, XmlReportWriter

__all__ = [
    "ExecutionPipeline",
    "ReportWriter",
    "TestEngine",
    "UnittestEngine",
    "XmlReportWriter",
]
