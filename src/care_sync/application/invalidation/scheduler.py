"""Invalidation – InvalidationScheduler: settle-refetch and polling."""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from care_sync.application.cache import CacheStore, EntryStatus
from care_sync.application.invalidation.poll import PollHandle
from care_sync.kernel.errors import BaseError, ServerError
from care_sync.kernel.types import Err, Ok, QueryKey, Result, as_key
from care_sync.observability.logging import get_logger

__all__ = ["Fetcher", "InvalidationScheduler"]

logger = get_logger(__name__)

Fetcher = Callable[[QueryKey], Awaitable["Result[Any, BaseError]"]]


class InvalidationScheduler:
    """Mark keys stale and refetch them, on demand or on an interval.

    A refetch result is written only if the key's generation is unchanged
    since the refetch started and no mutation is in flight on it, so a slow
    refetch never clobbers a newer optimistic or committed value.
    """

    def __init__(self, store: CacheStore) -> None:
        self._store = store
        self._fetchers: dict[str, Fetcher] = {}
        self._inflight: dict[QueryKey, tuple[int, asyncio.Task[Result[Any, BaseError]]]] = {}
        self._polls: set[PollHandle] = set()
        self._suspended = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_fetcher(self, root: str, fetcher: Fetcher) -> None:
        """Use *fetcher* for every key whose first segment is *root*."""
        self._fetchers[root] = fetcher

    def has_fetcher(self, key: QueryKey) -> bool:
        return as_key(key).root in self._fetchers

    # ------------------------------------------------------------------
    # Refetching
    # ------------------------------------------------------------------

    async def refetch(self, key: QueryKey) -> Result[Any, BaseError]:
        """Load *key* now and write the result, subject to the generation guard."""
        key = as_key(key)
        return await self._load(key, self._store.read(key).generation)

    def settle(self, key: QueryKey) -> asyncio.Task[Result[Any, BaseError]] | None:
        """Mark *key* stale and start a background refetch.

        Returns the refetch task, or ``None`` when there is nothing to do: the
        key has no fetcher, or a mutation is in flight (that mutation settles
        the key itself when it finishes). An absent entry is created and
        loaded. A second call while a refetch of the same generation is
        running joins it.
        """
        key = as_key(key)
        entry = self._store.peek(key)
        if entry is None:
            if key.root not in self._fetchers:
                logger.debug("settle_skipped", key=str(key), reason="no_entry")
                return None
            entry = self._store.read(key)
        if entry.pending_mutations:
            logger.debug("settle_skipped", key=str(key), reason="mutation_in_flight")
            return None
        if entry.status is EntryStatus.FRESH:
            self._store.set_status(key, EntryStatus.STALE)
        if key.root not in self._fetchers:
            logger.debug("settle_skipped", key=str(key), reason="no_fetcher")
            return None

        generation = entry.generation
        running = self._inflight.get(key)
        if running is not None and running[0] == generation and not running[1].done():
            return running[1]

        task = asyncio.get_running_loop().create_task(self._load(key, generation))
        self._inflight[key] = (generation, task)
        task.add_done_callback(lambda t, k=key: self._forget(k, t))
        return task

    def invalidate(self, prefix: QueryKey) -> list[asyncio.Task[Result[Any, BaseError]]]:
        """Settle every cached key starting with *prefix*."""
        prefix = as_key(prefix)
        tasks = []
        for key in self._store.keys():
            if key.startswith(prefix):
                task = self.settle(key)
                if task is not None:
                    tasks.append(task)
        return tasks

    async def _load(self, key: QueryKey, generation: int) -> Result[Any, BaseError]:
        fetcher = self._fetchers.get(key.root)
        if fetcher is None:
            raise LookupError(f"no fetcher registered for '{key.root}'")
        try:
            result = await fetcher(key)
        except BaseError as exc:
            result = Err(exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("refetch_raised", key=str(key))
            result = Err(ServerError(f"fetcher failed: {exc}", cause=exc))
        if not isinstance(result, (Ok, Err)):
            result = Ok(result)

        if result.is_err():
            logger.warning("refetch_failed", key=str(key), error=result.error.code, message=result.error.message)
            entry = self._store.peek(key)
            if entry is not None and entry.status is EntryStatus.FRESH and entry.generation == generation:
                self._store.set_status(key, EntryStatus.STALE)
            return result

        entry = self._store.peek(key)
        if entry is None:
            logger.debug("refetch_dropped", key=str(key), reason="evicted")
        elif entry.generation != generation or entry.pending_mutations:
            logger.debug("refetch_dropped", key=str(key), reason="superseded", generation=generation)
        elif entry.value == result.value:
            self._store.set_status(key, EntryStatus.FRESH)
        else:
            self._store.write(key, result.value, EntryStatus.FRESH)
            logger.debug("refetch_applied", key=str(key))
        return result

    def _forget(self, key: QueryKey, task: asyncio.Task[Any]) -> None:
        running = self._inflight.get(key)
        if running is not None and running[1] is task:
            del self._inflight[key]

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def poll(self, key: QueryKey, interval_ms: int) -> PollHandle:
        """Call ``settle(key)`` every *interval_ms* until the handle is cancelled."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        handle = PollHandle(as_key(key), interval_ms)
        task = asyncio.get_running_loop().create_task(self._poll_loop(handle))
        handle.attach(task)
        self._polls.add(handle)
        task.add_done_callback(lambda _t: self._polls.discard(handle))
        logger.debug("poll_started", key=str(handle.key), interval_ms=interval_ms)
        return handle

    async def _poll_loop(self, handle: PollHandle) -> None:
        while not handle.cancelled:
            await asyncio.sleep(handle.interval_seconds)
            if handle.cancelled:
                break
            if self._suspended:
                continue
            handle.ticks += 1
            self.settle(handle.key)

    def suspend(self) -> None:
        """Skip poll ticks until ``resume`` (app or screen not visible)."""
        if not self._suspended:
            logger.info("polling_suspended", polls=len(self._polls))
        self._suspended = True

    def resume(self) -> None:
        if self._suspended:
            logger.info("polling_resumed", polls=len(self._polls))
        self._suspended = False

    @property
    def suspended(self) -> bool:
        return self._suspended

    @property
    def active_polls(self) -> list[PollHandle]:
        return [h for h in self._polls if not h.cancelled]

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Cancel every poll and wait for outstanding refetches."""
        for handle in list(self._polls):
            handle.cancel()
        tasks = [task for _, task in self._inflight.values()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
