"""Query keys – structural addresses of cache slots."""

from __future__ import annotations

import dataclasses
from typing import Any


@dataclasses.dataclass(frozen=True, slots=True)
class QueryKey:
    """Ordered tuple of string segments addressing one cache slot.

    Two keys are the same slot iff every segment matches::

        QueryKey.of("tasks", "L1") == QueryKey(("tasks", "L1"))   # True
        QueryKey.of("tasks", 7) == QueryKey.of("tasks", "7")      # True
    """

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("QueryKey needs at least one segment")
        if not all(isinstance(s, str) for s in self.segments):
            raise TypeError("QueryKey segments must be strings; use QueryKey.of()")

    @classmethod
    def of(cls, *segments: Any) -> "QueryKey":
        """Build a key, coercing identifier segments to ``str``."""
        return cls(tuple(str(s) for s in segments))

    @property
    def root(self) -> str:
        """First segment; names the resource collection and selects its fetcher."""
        return self.segments[0]

    def startswith(self, prefix: "QueryKey") -> bool:
        n = len(prefix.segments)
        return self.segments[:n] == prefix.segments

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return ":".join(self.segments)


def as_key(key: "QueryKey | tuple[Any, ...] | list[Any] | str") -> QueryKey:
    """Accept the loose key shapes view code tends to pass around."""
    if isinstance(key, QueryKey):
        return key
    if isinstance(key, str):
        return QueryKey.of(key)
    return QueryKey.of(*key)


__all__ = ["QueryKey", "as_key"]
