"""Loading of registries from entry points."""

from importlib.metadata import entry_points

from live_test_runner.registry.manifest import RegistryManifest

ENTRY_POINT_GROUP = "live_test_runner.registries"


class RegistryNotFoundError(Exception):
    """Raised when no registry is published for a discovery mode."""


def load_registry_manifest(key: str) -> RegistryManifest:
    """Load a registry manifest by discovery mode.

    Args:
        key: The discovery mode as registered in pyproject.toml
             (e.g., "auto", "declared")

    Returns:
        The registry manifest instance

    Raises:
        RegistryNotFoundError: If no registry with the given key is found

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            manifest: RegistryManifest = entry.load()
            return manifest

    available = sorted(e.name for e in entries)
    raise RegistryNotFoundError(
        f"Registry '{key}' not found. Available registries: {available}"
    )
