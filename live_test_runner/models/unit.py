"""Models for discovered test units and registry change events."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal


class TestClassNotFoundError(Exception):
    """Raised when the class behind a test unit cannot be loaded."""

    __test__ = False


@dataclass(frozen=True, kw_only=True)
class TestUnit:
    """One runnable test class contributed by one component.

    Identity is ``<component_id>@<qualified class name>``. The class itself is
    only loaded on demand through ``resolver``.
    """

    __test__ = False

    component_id: str
    name: str
    resolver: Callable[[], type] = field(compare=False, repr=False)

    @property
    def id(self) -> str:
        """Registry-wide identifier of this unit."""
        return f"{self.component_id}@{self.name}"

    def load_class(self) -> type:
        """Load the test class.

        Raises:
            TestClassNotFoundError: If the class cannot be imported

        """
        return self.resolver()


@dataclass(frozen=True, kw_only=True)
class RegistryEvent:
    """A single add or remove transition of a test unit."""

    type: Literal["add", "remove"]
    test: TestUnit
