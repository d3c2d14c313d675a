"""Builders of small ``unittest`` classes with known outcomes.

Each builder returns a fresh class so that state such as attempt counters is
never shared between tests.
"""

import itertools
import threading
import unittest
from abc import ABC, abstractmethod


def passing_case() -> type[unittest.TestCase]:
    class PassingTest(unittest.TestCase):
        def test_one(self) -> None:
            self.assertTrue(True)

        def test_two(self) -> None:
            self.assertEqual(1 + 1, 2)

    return PassingTest


def failing_case() -> type[unittest.TestCase]:
    class FailingTest(unittest.TestCase):
        def test_passes(self) -> None:
            pass

        def test_fails(self) -> None:
            self.fail("always broken")

        def test_errors(self) -> None:
            raise RuntimeError("boom")

    return FailingTest


def flaky_case(failures: int) -> type[unittest.TestCase]:
    """Class whose ``test_flaky`` fails on its first ``failures`` attempts."""
    attempts = itertools.count(1)

    class FlakyTest(unittest.TestCase):
        attempt_count = 0

        def test_flaky(self) -> None:
            type(self).attempt_count = next(attempts)
            if type(self).attempt_count <= failures:
                self.fail(f"transient failure #{type(self).attempt_count}")

        def test_stable(self) -> None:
            pass

    return FlakyTest


def skipped_case() -> type[unittest.TestCase]:
    @unittest.skip("not today")
    class SkippedTest(unittest.TestCase):
        def test_skipped(self) -> None:
            pass

    return SkippedTest


def class_setup_error_case() -> type[unittest.TestCase]:
    class BrokenSetUpTest(unittest.TestCase):
        @classmethod
        def setUpClass(cls) -> None:
            raise RuntimeError("cannot prepare fixture")

        def test_never_runs(self) -> None:
            pass

    return BrokenSetUpTest


def abstract_case() -> type[unittest.TestCase]:
    class AbstractTest(unittest.TestCase, ABC):
        @abstractmethod
        def build(self) -> object: ...

        def test_build(self) -> None:
            self.assertIsNotNone(self.build())

    return AbstractTest


def empty_case() -> type[unittest.TestCase]:
    class HelperTest(unittest.TestCase):
        def helper(self) -> None:
            pass

    return HelperTest


def blocking_case(
    started: threading.Event, release: threading.Event, timeout: float = 5.0
) -> type[unittest.TestCase]:
    """Class whose single test signals ``started`` then waits for ``release``."""

    class BlockingTest(unittest.TestCase):
        def test_blocks(self) -> None:
            started.set()
            self.assertTrue(release.wait(timeout), "test was never released")

    return BlockingTest
