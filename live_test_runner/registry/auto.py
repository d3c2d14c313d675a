"""Registry discovering tests by naming conventions."""

import logging
from collections.abc import Iterable
from functools import partial

from live_test_runner.models.unit import TestUnit
from live_test_runner.registry.base import TestRegistry
from live_test_runner.registry.discovery import SourceTreeDiscovery, resolve_class
from live_test_runner.registry.inspector import (
    NamingConventionInspector,
    TestClassInspector,
)
from live_test_runner.registry.manifest import RegistryManifest

log = logging.getLogger(__name__)


class AutoDiscoveryRegistry(TestRegistry):
    """Registers every class of a component that is named like a test.

    Names follow the usual surefire conventions (``Test*``, ``*Test``,
    ``*Tests``, ``*TestCase`` and the ``IT`` variants). Classes are not loaded
    here; whether they can actually run is decided at execution time.
    """

    discovery = "auto"

    def __init__(
        self,
        scanner: SourceTreeDiscovery | None = None,
        inspector: TestClassInspector | None = None,
    ) -> None:
        super().__init__()
        self._scanner = scanner or SourceTreeDiscovery()
        self._inspector = inspector or NamingConventionInspector()

    def discover_units(self, component_id: str) -> Iterable[TestUnit]:
        for class_name in self._scanner.enumerate(component_id):
            if not self._inspector.looks_like_test(class_name):
                continue
            log.debug("Found test %s in %s", class_name, component_id)
            yield TestUnit(
                component_id=component_id,
                name=class_name,
                resolver=partial(resolve_class, class_name),
            )


auto_registry_manifest = RegistryManifest(
    discovery=AutoDiscoveryRegistry.discovery,
    registry_factory=AutoDiscoveryRegistry,
)
