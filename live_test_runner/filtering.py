"""Include/exclude filtering of test names with ant-style glob patterns."""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

# Classes shipped by unittest itself are never test units of a component.
DEFAULT_EXCLUDE = "unittest.**"

_TOKENS = re.compile(r"(^\*\*\.|\.\*\*\.|\.\*\*$|\*\*|\*|\?)")


def split_patterns(patterns: str | Iterable[str] | None) -> Sequence[str]:
    """Normalise a pattern list given as a sequence or a comma/space string."""
    if patterns is None:
        return ()
    if isinstance(patterns, str):
        patterns = [patterns]
    return tuple(
        part for pattern in patterns for part in re.split(r"[,\s]+", pattern) if part
    )


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate an ant-style glob into a regular expression.

    ``.`` separates segments: ``*`` and ``?`` stay inside one segment while
    ``**`` spans segments. ``a.**.b``, ``**.b`` and ``a.**`` also match zero
    segments, so ``a.**`` accepts ``a`` itself as well as everything below it.
    """
    parts: list[str] = []
    for token in _TOKENS.split(pattern):
        if token == "**.":
            parts.append(r"(?:.*\.)?")
        elif token == ".**.":
            parts.append(r"\.(?:.*\.)?")
        elif token == ".**":
            parts.append(r"(?:\..*)?")
        elif token == "**":
            parts.append(".*")
        elif token == "*":
            parts.append(r"[^.]*")
        elif token == "?":
            parts.append(r"[^.]")
        elif token:
            parts.append(re.escape(token))
    return re.compile("".join(parts))


@dataclass(frozen=True, init=False)
class TestFilter:
    """Decides whether a test, by its qualified name, is eligible to run.

    Excludes win over includes; an empty include list accepts everything not
    excluded. :data:`DEFAULT_EXCLUDE` is always part of the excludes.
    """

    __test__ = False

    includes: Sequence[str]
    excludes: Sequence[str]
    _include_res: Sequence[re.Pattern[str]] = field(repr=False, compare=False)
    _exclude_res: Sequence[re.Pattern[str]] = field(repr=False, compare=False)

    def __init__(
        self,
        includes: str | Iterable[str] | None = None,
        excludes: str | Iterable[str] | None = None,
    ) -> None:
        include_patterns = split_patterns(includes)
        exclude_patterns = split_patterns(excludes)
        if DEFAULT_EXCLUDE not in exclude_patterns:
            exclude_patterns = (*exclude_patterns, DEFAULT_EXCLUDE)

        object.__setattr__(self, "includes", include_patterns)
        object.__setattr__(self, "excludes", exclude_patterns)
        object.__setattr__(
            self, "_include_res", tuple(map(compile_pattern, include_patterns))
        )
        object.__setattr__(
            self, "_exclude_res", tuple(map(compile_pattern, exclude_patterns))
        )

    def accept(self, name: str) -> bool:
        """Return True if ``name`` passes the filter."""
        if any(regex.fullmatch(name) for regex in self._exclude_res):
            return False
        if self._include_res:
            return any(regex.fullmatch(name) for regex in self._include_res)
        return True
