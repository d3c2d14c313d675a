"""Rules deciding whether a class is a test and whether it can be run."""

import inspect
import unittest
from typing import Protocol

_TEST_PREFIXES = ("Test", "IT")
_TEST_SUFFIXES = ("Test", "Tests", "TestCase", "IT", "ITCase")


class TestClassInspector(Protocol):
    """Capability used by registries and the execution pipeline."""

    __test__ = False

    def looks_like_test(self, name: str) -> bool:
        """Return True if the qualified class name looks like a test."""
        ...

    def is_runnable(self, test_class: type) -> bool:
        """Return True if the loaded class can be executed as a test."""
        ...


class NamingConventionInspector:
    """Surefire-style naming rules plus unittest based validation."""

    def __init__(self, loader: unittest.TestLoader | None = None) -> None:
        self._loader = loader or unittest.TestLoader()

    def looks_like_test(self, name: str) -> bool:
        simple_name = name.rpartition(".")[2]
        return simple_name.startswith(_TEST_PREFIXES) or simple_name.endswith(
            _TEST_SUFFIXES
        )

    def is_runnable(self, test_class: type) -> bool:
        return self.is_valid(test_class) and self.has_tests(test_class)

    def is_valid(self, test_class: type) -> bool:
        """Concrete, public classes only; protocols count as interfaces."""
        if not inspect.isclass(test_class) or inspect.isabstract(test_class):
            return False
        if getattr(test_class, "_is_protocol", False):
            return False
        parts = test_class.__qualname__.split(".")
        return not any(part.startswith("_") for part in parts)

    def has_tests(self, test_class: type) -> bool:
        """TestCase subclasses defining at least one test method."""
        return issubclass(test_class, unittest.TestCase) and bool(
            self._loader.getTestCaseNames(test_class)
        )
