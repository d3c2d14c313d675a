"""Registry reading the tests a component declares explicitly."""

import importlib
import logging
from collections.abc import Iterable
from functools import partial

from live_test_runner.models.unit import TestUnit
from live_test_runner.registry.base import TestRegistry
from live_test_runner.registry.discovery import resolve_class
from live_test_runner.registry.manifest import RegistryManifest

log = logging.getLogger(__name__)

DECLARATION_ATTRIBUTE = "__tests__"


class DeclaredTestRegistry(TestRegistry):
    """Registers the classes a component lists in its ``__tests__`` attribute.

    Entries are qualified class names; names relative to the component
    (starting with ``.``) are resolved against the component itself.
    """

    discovery = "declared"

    def discover_units(self, component_id: str) -> Iterable[TestUnit]:
        try:
            component = importlib.import_module(component_id)
        except Exception:
            log.exception("Cannot import component %s", component_id)
            return []

        declared = getattr(component, DECLARATION_ATTRIBUTE, ())
        if isinstance(declared, str):
            declared = [declared]

        units: list[TestUnit] = []
        for entry in declared:
            class_name = f"{component_id}{entry}" if entry.startswith(".") else entry
            units.append(
                TestUnit(
                    component_id=component_id,
                    name=class_name,
                    resolver=partial(resolve_class, class_name),
                )
            )
        return units


declared_registry_manifest = RegistryManifest(
    discovery=DeclaredTestRegistry.discovery,
    registry_factory=DeclaredTestRegistry,
)
