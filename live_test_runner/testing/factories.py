"""Test factories for generating test data."""

from polyfactory.factories import DataclassFactory

from live_test_runner.models.result import CaseResult, Report


class CaseResultFactory(DataclassFactory[CaseResult]):
    """Factory for CaseResult."""

    __model__ = CaseResult

    status = "success"
    message = None
    error_type = None
    trace = None
    reruns = 0
    test_class = None


class ReportFactory(DataclassFactory[Report]):
    """Factory for Report."""

    __model__ = Report

    status = "success"
    failure_messages = ()
    cases = ()
