"""Application cache – CacheEntry and EntryStatus."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from care_sync.kernel.types import QueryKey

__all__ = ["CacheEntry", "EntryStatus", "Subscriber"]


class EntryStatus(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    FETCHING = "fetching"


Subscriber = Callable[[QueryKey, "CacheEntry"], None]


@dataclass
class CacheEntry:
    """State of one cache slot.

    ``last_snapshot`` is only meaningful while ``has_snapshot`` is true, i.e.
    while an optimistic mutation is in flight; a pre-mutation value of
    ``None`` is still a valid rollback target. ``engaged`` turns true on the
    first subscription; only engaged entries are ever evicted.
    """

    key: QueryKey
    value: Any = None
    status: EntryStatus = EntryStatus.FRESH
    last_snapshot: Any = None
    has_snapshot: bool = False
    generation: int = 0
    pending_mutations: int = 0
    engaged: bool = False
    updated_at: float | None = None
    subscribers: list[Subscriber] = field(default_factory=list, repr=False)

    @property
    def subscriber_count(self) -> int:
        return len(self.subscribers)

    @property
    def is_stale(self) -> bool:
        return self.status is EntryStatus.STALE
