"""Test registries and the discovery collaborators they rely on."""

from live_test_runner.registry.auto import AutoDiscoveryRegistry, auto_registry_manifest
from live_test_runner.registry.base import RegistryListener, TestRegistry
from live_test_runner.registry.components import ComponentHub, ComponentLifecycleSource
from live_test_runner.registry.declared import (
    DeclaredTestRegistry,
    declared_registry_manifest,
)

__all__ = [
    "AutoDiscoveryRegistry",
    "ComponentHub",
    "ComponentLifecycleSource",
    "DeclaredTestRegistry",
    "RegistryListener",
    "TestRegistry",
    "auto_registry_manifest",
    "declared_registry_manifest",
]
