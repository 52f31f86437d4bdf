"""QueryClient – the surface view bindings talk to."""
from __future__ import annotations

import contextlib
from typing import Any, Callable, Iterable, Iterator

from care_sync.application.cache import CacheEntry, CacheStore, Subscriber
from care_sync.application.invalidation import Fetcher, InvalidationScheduler, PollHandle
from care_sync.application.mutations import MutationExecutor, Reconciler, RemoteOperation
from care_sync.application.mutations.reconcile import DEFAULT_ID_FIELD
from care_sync.kernel.errors import BaseError
from care_sync.kernel.types import QueryKey, Result, as_key

__all__ = ["QueryClient"]


class QueryClient:
    """Wire a store, an executor and a scheduler together.

    A new subscription resumes suspended polling: a view coming back on
    screen is what ends a suspension.
    """

    def __init__(
        self,
        store: CacheStore | None = None,
        *,
        id_field: str = DEFAULT_ID_FIELD,
    ) -> None:
        self.store = store or CacheStore()
        self.scheduler = InvalidationScheduler(self.store)
        self.executor = MutationExecutor(self.store, self.scheduler, id_field=id_field)

    def register_fetcher(self, root: str, fetcher: Fetcher) -> None:
        self.scheduler.register_fetcher(root, fetcher)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: QueryKey) -> Any:
        entry = self.store.peek(key)
        return entry.value if entry is not None else None

    def entry(self, key: QueryKey) -> CacheEntry:
        return self.store.read(key)

    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]:
        """Load *key* from the server into the cache."""
        return await self.scheduler.refetch(key)

    def subscribe(self, key: QueryKey, on_change: Subscriber) -> Callable[[], None]:
        self.scheduler.resume()
        return self.store.subscribe(key, on_change)

    @contextlib.contextmanager
    def watch(self, key: QueryKey, on_change: Subscriber) -> Iterator[CacheEntry]:
        """Subscribe for the duration of a ``with`` block."""
        unsubscribe = self.subscribe(key, on_change)
        try:
            yield self.store.read(key)
        finally:
            unsubscribe()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def mutate(
        self,
        key: QueryKey,
        optimistic: Any,
        remote_operation: RemoteOperation,
        *,
        temp_id: str | None = None,
        reconcile: Reconciler | None = None,
        invalidate: Iterable[QueryKey] = (),
    ) -> Result[Any, BaseError]:
        return await self.executor.mutate(
            key,
            optimistic,
            remote_operation,
            temp_id=temp_id,
            reconcile=reconcile,
            invalidate=invalidate,
        )

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    def poll(self, key: QueryKey, interval_ms: int) -> PollHandle:
        return self.scheduler.poll(key, interval_ms)

    def invalidate(self, prefix: QueryKey) -> list[Any]:
        return self.scheduler.invalidate(as_key(prefix))

    def suspend(self) -> None:
        self.scheduler.suspend()

    def resume(self) -> None:
        self.scheduler.resume()

    async def aclose(self) -> None:
        await self.scheduler.close()
