"""Enumerate the classes of a component without importing it."""

import ast
import importlib
import importlib.machinery
import importlib.util
import logging
from collections.abc import Iterator, Sequence
from pathlib import Path

from live_test_runner.models.unit import TestClassNotFoundError

log = logging.getLogger(__name__)


class SourceTreeDiscovery:
    """Lists class names defined in a component's source files.

    Source files are parsed with :mod:`ast`, so discovering a component never
    executes its code.
    """

    def enumerate(self, component_id: str) -> Sequence[str]:
        """Return the qualified names of all classes in the component.

        Args:
            component_id: Import name of a package or module (e.g. "acme.tests")

        Returns:
            Qualified class names in source order, packages walked depth first

        """
        try:
            spec = importlib.util.find_spec(component_id)
        except (ImportError, ValueError) as e:
            log.warning("Cannot locate component %s: %s", component_id, e)
            return []

        if spec is None:
            log.warning("Component %s not found", component_id)
            return []

        class_names: list[str] = []
        for module_name, path in self._iter_sources(component_id, spec):
            class_names.extend(self._classes_in_file(module_name, path))
        return class_names

    def _iter_sources(
        self, component_id: str, spec: importlib.machinery.ModuleSpec
    ) -> Iterator[tuple[str, Path]]:
        if spec.submodule_search_locations:
            for location in spec.submodule_search_locations:
                root = Path(location)
                for path in sorted(root.rglob("*.py")):
                    yield _module_name(component_id, root, path), path
        elif spec.origin and spec.origin.endswith(".py"):
            yield component_id, Path(spec.origin)

    def _classes_in_file(self, module_name: str, path: Path) -> Sequence[str]:
        try:
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        except (OSError, SyntaxError, UnicodeDecodeError, ValueError) as e:
            log.warning("Skip unreadable source %s: %s", path, e)
            return []

        return [f"{module_name}.{qualname}" for qualname in _class_qualnames(tree)]


def _module_name(component_id: str, root: Path, path: Path) -> str:
    parts = list(path.relative_to(root).with_suffix("").parts)
    if parts[-1] == "__init__":
        parts.pop()
    return ".".join([component_id, *parts])


def _class_qualnames(node: ast.AST, prefix: str = "") -> Iterator[str]:
    for child in ast.iter_child_nodes(node):
        if isinstance(child, ast.ClassDef):
            qualname = f"{prefix}{child.name}"
            yield qualname
            yield from _class_qualnames(child, f"{qualname}.")


def resolve_class(qualified_name: str) -> type:
    """Import the module part of ``qualified_name`` and return the class.

    The longest importable module prefix wins, so nested classes such as
    ``pkg.mod.Outer.InnerTest`` resolve as well.

    Raises:
        TestClassNotFoundError: If no module/attribute combination resolves

    """
    parts = qualified_name.split(".")
    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            target: object = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if e.name is not None and f"{module_name}.".startswith(f"{e.name}."):
                continue
            raise TestClassNotFoundError(f"Cannot load {qualified_name}: {e}") from e
        except Exception as e:
            raise TestClassNotFoundError(f"Cannot load {qualified_name}: {e}") from e

        try:
            for attribute in parts[split:]:
                target = getattr(target, attribute)
        except AttributeError as e:
            raise TestClassNotFoundError(f"Cannot load {qualified_name}: {e}") from e

        if not isinstance(target, type):
            raise TestClassNotFoundError(f"{qualified_name} is not a class")
        return target

    raise TestClassNotFoundError(f"No importable module for {qualified_name}")
