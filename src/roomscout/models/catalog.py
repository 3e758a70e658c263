"""Static catalog types: selector fallback chains and popup patterns.

Both types are frozen and built once at import time.  Engines receive
catalogs by reference and never mutate them, so one catalog instance can be
shared by any number of page objects.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class SelectorConfig:
    """A logical UI element: a primary selector plus ordered fallbacks.

    Attributes:
        primary: Most stable selector (usually a ``data-testid``).
        fallbacks: Fallback selectors in decreasing order of confidence.
        description: Human-readable label used in log lines.
    """

    primary: str
    fallbacks: tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self) -> None:
        if not self.primary:
            raise ValueError("primary selector cannot be empty")
        # Accept any iterable of strings but store a tuple.
        object.__setattr__(self, "fallbacks", tuple(self.fallbacks))

    def candidates(self) -> tuple[str, ...]:
        """Return the primary selector followed by the fallbacks, in order."""
        return (self.primary, *self.fallbacks)

    def combined(self) -> str:
        """Return every candidate joined into one CSS selector list."""
        return ", ".join(self.candidates())


@dataclass(frozen=True)
class PopupPattern:
    """A named category of interstitial UI and the selectors that close it.

    Lower ``priority`` values are checked first, across all patterns.
    """

    name: str
    selectors: tuple[str, ...]
    priority: int

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("popup pattern name cannot be empty")
        object.__setattr__(self, "selectors", tuple(self.selectors))


class PopupCatalog:
    """Immutable, priority-ordered collection of ``PopupPattern`` objects.

    Patterns are sorted once by ascending priority (stable for ties, so
    declaration order breaks them).

    Raises:
        ValueError: If two patterns share a name.
    """

    __slots__ = ("_patterns", "_by_name")

    def __init__(self, patterns: Iterable[PopupPattern]) -> None:
        ordered = tuple(sorted(patterns, key=lambda p: p.priority))
        by_name: dict[str, PopupPattern] = {}
        for pattern in ordered:
            if pattern.name in by_name:
                raise ValueError(f"duplicate popup pattern name: {pattern.name!r}")
            by_name[pattern.name] = pattern
        self._patterns = ordered
        self._by_name = by_name

    @property
    def patterns(self) -> tuple[PopupPattern, ...]:
        return self._patterns

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self._patterns)

    def get(self, name: str) -> PopupPattern | None:
        """Return the pattern called *name*, or ``None``."""
        return self._by_name.get(name)

    def __iter__(self) -> Iterator[PopupPattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
