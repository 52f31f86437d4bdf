"""Mutations – MutationExecutor, the single optimistic-update path.

Every write flow (create task, delete note, accept invitation, …) is one
``mutate`` call::

    outcome = await executor.mutate(
        QueryKey.of("tasks", loved_one_id),
        lambda current: add_pending_task(current, optimistic_task),
        lambda: remote.post(f"/api/tasks/loved-one/{loved_one_id}", body),
        temp_id=optimistic_task["_id"],
    )

Steps per mutation: wait for the key's FIFO turn, snapshot, apply the
optimistic value, await the remote operation, commit the reconciled value or
roll back to the snapshot, then settle (background refetch).
"""
from __future__ import annotations

import asyncio
import copy
from typing import Any, Callable, Iterable, Protocol

from care_sync.application.cache import CacheStore
from care_sync.application.mutations.reconcile import DEFAULT_ID_FIELD, reconcile as default_reconcile
from care_sync.application.mutations.record import MutationRecord, MutationStatus, RemoteOperation
from care_sync.kernel.errors import BaseError, MalformedResponseError, ServerError
from care_sync.kernel.types import Err, Ok, QueryKey, Result, as_key
from care_sync.observability.logging import get_logger

__all__ = ["MutationExecutor", "Reconciler", "Settler"]

logger = get_logger(__name__)

Reconciler = Callable[[Any, Any], Any]


class Settler(Protocol):
    def settle(self, key: QueryKey) -> Any: ...


class MutationExecutor:
    """Run optimistic mutations with exact rollback.

    Mutations on the same key are serialised FIFO; different keys run
    concurrently. A started mutation always runs to commit or rollback.
    """

    def __init__(
        self,
        store: CacheStore,
        settler: Settler | None = None,
        *,
        id_field: str = DEFAULT_ID_FIELD,
    ) -> None:
        self._store = store
        self._settler = settler
        self._id_field = id_field
        self._locks: dict[QueryKey, asyncio.Lock] = {}
        self._queued: dict[QueryKey, int] = {}
        self._records: dict[QueryKey, MutationRecord] = {}

    def bind_settler(self, settler: Settler) -> None:
        self._settler = settler

    def in_flight(self, key: QueryKey) -> MutationRecord | None:
        return self._records.get(as_key(key))

    def queued(self, key: QueryKey) -> int:
        """Mutations waiting behind the in-flight one on *key*."""
        return self._queued.get(as_key(key), 0)

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
        """Apply *optimistic* to *key*, run *remote_operation*, commit or roll back.

        *optimistic* is either the new cache value or an updater receiving a
        copy of the current value; updaters run only once the mutation
        reaches the head of its key's queue.

        Returns ``Ok(committed_value)`` or the classified ``Err`` after the
        cache has been restored to its pre-mutation value.
        """
        key = as_key(key)
        extra_keys = [as_key(k) for k in invalidate]
        lock = self._locks.setdefault(key, asyncio.Lock())

        self._store.retain(key)
        self._queued[key] = self._queued.get(key, 0) + 1
        executed = False
        try:
            try:
                await lock.acquire()
            finally:
                self._queued[key] -= 1
            executed = True
            try:
                return await self._execute(key, optimistic, remote_operation, temp_id, reconcile)
            finally:
                lock.release()
                if not self._queued.get(key) and not lock.locked():
                    self._locks.pop(key, None)
                    self._queued.pop(key, None)
        finally:
            self._store.release(key)
            if executed:
                self._settle(key, extra_keys)

    async def _execute(
        self,
        key: QueryKey,
        optimistic: Any,
        remote_operation: RemoteOperation,
        temp_id: str | None,
        reconcile: Reconciler | None,
    ) -> Result[Any, BaseError]:
        record = MutationRecord(key=key, remote_operation=remote_operation, temp_id=temp_id)
        self._records[key] = record
        record.generation = self._store.begin_mutation(key)
        log = logger.bind(key=str(key), generation=record.generation)
        try:
            current = self._store.read(key).value
            value = optimistic(copy.deepcopy(current)) if callable(optimistic) else optimistic
            record.optimistic_value = value
            self._store.apply_optimistic(key, value)
            log.debug("mutation_applied", temp_id=temp_id)

            try:
                result = await self._invoke(remote_operation)
            except asyncio.CancelledError:
                self._store.rollback(key)
                record.mark(MutationStatus.ROLLED_BACK)
                log.warning("mutation_cancelled")
                raise

            if result.is_ok():
                try:
                    committed = self._reconcile(reconcile, value, result.value, temp_id)
                except MalformedResponseError as exc:
                    result = Err(exc)
                except Exception as exc:  # noqa: BLE001
                    log.exception("mutation_reconcile_failed")
                    result = Err(MalformedResponseError(f"could not reconcile response: {exc}", cause=exc))
                else:
                    self._store.commit(key, committed)
                    record.mark(MutationStatus.COMMITTED)
                    log.info("mutation_committed", duration_ms=record.duration_ms)
                    return Ok(committed)

            error = result.error
            self._store.rollback(key)
            record.mark(MutationStatus.ROLLED_BACK, error)
            log.warning("mutation_rolled_back", error=error.code, message=error.message)
            return Err(error)
        finally:
            self._records.pop(key, None)

    async def _invoke(self, remote_operation: RemoteOperation) -> Result[Any, BaseError]:
        try:
            result = await remote_operation()
        except BaseError as exc:
            return Err(exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("remote_operation_raised")
            return Err(ServerError(f"remote operation failed: {exc}", cause=exc))
        if isinstance(result, (Ok, Err)):
            return result
        return Ok(result)

    def _reconcile(self, reconcile: Reconciler | None, optimistic: Any, confirmed: Any, temp_id: str | None) -> Any:
        if reconcile is not None:
            return reconcile(optimistic, confirmed)
        return default_reconcile(optimistic, confirmed, temp_id=temp_id, id_field=self._id_field)

    def _settle(self, key: QueryKey, extra_keys: list[QueryKey]) -> None:
        if self._settler is None:
            return
        for k in [key, *extra_keys]:
            if self._store.contains(k):
                self._settler.settle(k)

