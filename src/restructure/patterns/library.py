"""Ordered, read-only catalogue of patterns.

The order of a library is a policy: when several patterns match the same
graph, the one listed first wins.
"""
from __future__ import annotations

from restructure.core import typing
from restructure.errors import PatternError
from restructure.patterns.pattern import Pattern


class PatternLibrary:
    """An immutable, priority-ordered sequence of :class:`Pattern` values."""

    __slots__ = ("_patterns", "_by_kind")

    def __init__(self, patterns: typing.Iterable[Pattern]) -> None:
        patterns = tuple(patterns)
        by_kind: dict[str, Pattern] = {}
        for pattern in patterns:
            if not isinstance(pattern, Pattern):
                raise PatternError(f"not a pattern: {pattern!r}")
            if pattern.kind in by_kind:
                raise PatternError(f"duplicate pattern kind {pattern.kind!r} in library")
            by_kind[pattern.kind] = pattern
        object.__setattr__(self, "_patterns", patterns)
        object.__setattr__(self, "_by_kind", by_kind)

    def __setattr__(self, name: str, value: typing.Any) -> None:
        raise AttributeError("PatternLibrary is immutable")

    def __iter__(self) -> typing.Iterator[Pattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __getitem__(self, kind: str) -> Pattern:
        try:
            return self._by_kind[kind]
        except KeyError:
            raise KeyError(f"no pattern named {kind!r}") from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._by_kind

    @property
    def kinds(self) -> list[str]:
        return [p.kind for p in self._patterns]

    def index(self, kind: str) -> int:
        return self.kinds.index(kind)

    def reordered(self, kinds: typing.Sequence[str]) -> "PatternLibrary":
        """Return a library holding the named patterns in the given order."""
        return PatternLibrary(self[kind] for kind in kinds)

    def extended(self, *patterns: Pattern) -> "PatternLibrary":
        """Return a library with *patterns* appended at the lowest priority."""
        return PatternLibrary((*self._patterns, *patterns))

    def __repr__(self) -> str:
        return f"PatternLibrary({self.kinds})"
