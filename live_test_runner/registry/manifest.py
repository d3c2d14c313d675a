"""Registry manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass

from live_test_runner.registry.base import TestRegistry


@dataclass(frozen=True, kw_only=True)
class RegistryManifest:
    """Manifest describing a registry plugin.

    Registries are published under their discovery mode key, and the factory
    is only called once the runner asks for that mode.
    """

    discovery: str
    registry_factory: Callable[[], TestRegistry]

    def create(self) -> TestRegistry:
        return self.registry_factory()
