"""Fixtures providing importable component packages on disk."""

import sys
import textwrap
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import TypeAlias

import pytest

ComponentFactory: TypeAlias = Callable[[str, Mapping[str, str]], Path]


@pytest.fixture
def make_component(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[ComponentFactory]:
    """Write a package from ``{relative path: source}`` and make it importable."""
    created: list[str] = []
    monkeypatch.syspath_prepend(str(tmp_path))

    def make(name: str, files: Mapping[str, str]) -> Path:
        root = tmp_path / name
        for relative, source in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source))
        created.append(name)
        return root

    yield make

    for module_name in list(sys.modules):
        if module_name.partition(".")[0] in created:
            del sys.modules[module_name]
