"""Application cache – CacheStore, the keyed map behind every view."""
from __future__ import annotations

import copy
import itertools
import time
from typing import Any, Callable

from care_sync.application.cache.entry import CacheEntry, EntryStatus, Subscriber
from care_sync.kernel.types import QueryKey, as_key
from care_sync.observability.logging import get_logger

__all__ = ["CacheStore"]

logger = get_logger(__name__)


class CacheStore:
    """Synchronous keyed cache with per-key subscribers.

    All access happens on the event loop thread, so nothing here locks and
    nothing here awaits. Subscribers are notified inline on every write.

    An entry lives from its first access until every subscriber it ever had
    has left and no mutation retains it. Entries that were never subscribed
    to (filled by ``fetch`` or a mutation alone) stay until ``clear``.

    Generations come from one store-wide counter so that an entry evicted and
    later recreated can never reissue a generation an older refetch captured.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._generations = itertools.count(1)
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(self, key: QueryKey) -> CacheEntry:
        """Return the entry for *key*, creating an empty ``FRESH`` one if absent."""
        key = as_key(key)
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key=key)
            self._entries[key] = entry
        return entry

    def peek(self, key: QueryKey) -> CacheEntry | None:
        return self._entries.get(as_key(key))

    def contains(self, key: QueryKey) -> bool:
        return as_key(key) in self._entries

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def snapshot(self, key: QueryKey) -> Any:
        """Deep copy of the current value, usable as a rollback target."""
        return copy.deepcopy(self.read(key).value)

    def subscriber_count(self, key: QueryKey) -> int:
        entry = self.peek(key)
        return entry.subscriber_count if entry is not None else 0

    def generation(self, key: QueryKey) -> int:
        entry = self.peek(key)
        return entry.generation if entry is not None else 0

    def has_pending_mutation(self, key: QueryKey) -> bool:
        entry = self.peek(key)
        return entry is not None and entry.pending_mutations > 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write(self, key: QueryKey, value: Any, status: EntryStatus = EntryStatus.FRESH) -> None:
        """Replace value and status, then notify subscribers synchronously."""
        entry = self.read(key)
        entry.value = value
        entry.status = status
        entry.updated_at = self._clock()
        self._notify(entry)

    def set_status(self, key: QueryKey, status: EntryStatus) -> None:
        """Change only the status flag; subscribers are not notified."""
        self.read(key).status = status

    def subscribe(self, key: QueryKey, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* for writes to *key*; returns an idempotent disposer."""
        entry = self.read(key)
        entry.subscribers.append(callback)
        entry.engaged = True
        disposed = False

        def unsubscribe() -> None:
            nonlocal disposed
            if disposed:
                return
            disposed = True
            current = self._entries.get(entry.key)
            if current is not entry:
                return
            try:
                entry.subscribers.remove(callback)
            except ValueError:
                pass
            self._maybe_evict(entry)

        return unsubscribe

    # ------------------------------------------------------------------
    # Optimistic mutation bookkeeping
    # ------------------------------------------------------------------

    def retain(self, key: QueryKey) -> None:
        """Pin the entry for a queued or running mutation."""
        self.read(key).pending_mutations += 1

    def release(self, key: QueryKey) -> None:
        entry = self.peek(key)
        if entry is None:
            return
        entry.pending_mutations = max(0, entry.pending_mutations - 1)
        self._maybe_evict(entry)

    def begin_mutation(self, key: QueryKey) -> int:
        """Advance the entry's generation; returns the new generation."""
        entry = self.read(key)
        entry.generation = next(self._generations)
        return entry.generation

    def apply_optimistic(self, key: QueryKey, value: Any) -> Any:
        """Record the rollback snapshot, then show *value* as ``FETCHING``."""
        entry = self.read(key)
        snapshot = copy.deepcopy(entry.value)
        entry.last_snapshot = snapshot
        entry.has_snapshot = True
        self.write(key, value, EntryStatus.FETCHING)
        return snapshot

    def commit(self, key: QueryKey, value: Any) -> None:
        entry = self.read(key)
        self._clear_snapshot(entry)
        self.write(key, value, EntryStatus.FRESH)

    def rollback(self, key: QueryKey) -> Any:
        """Restore the pre-mutation value exactly; returns it."""
        entry = self.read(key)
        if not entry.has_snapshot:
            raise RuntimeError(f"no optimistic snapshot to roll back for {entry.key}")
        value = entry.last_snapshot
        self._clear_snapshot(entry)
        self.write(key, value, EntryStatus.FRESH)
        return value

    def clear(self) -> None:
        self._entries.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _clear_snapshot(entry: CacheEntry) -> None:
        entry.last_snapshot = None
        entry.has_snapshot = False

    def _maybe_evict(self, entry: CacheEntry) -> None:
        if not entry.engaged or entry.subscribers or entry.pending_mutations:
            return
        if self._entries.get(entry.key) is entry:
            del self._entries[entry.key]
            logger.debug("cache_entry_evicted", key=str(entry.key))

    def _notify(self, entry: CacheEntry) -> None:
        for callback in list(entry.subscribers):
            try:
                callback(entry.key, entry)
            except Exception:  # noqa: BLE001
                logger.exception("cache_subscriber_failed", key=str(entry.key))
