"""Application – cache store, mutation executor, invalidation scheduler."""
from care_sync.application.cache import CacheEntry, CacheStore, EntryStatus
from care_sync.application.invalidation import InvalidationScheduler, PollHandle
from care_sync.application.mutations import MutationExecutor, MutationRecord, MutationStatus, reconcile
from care_sync.application.query_client import QueryClient

__all__ = [
    "CacheEntry",
    "CacheStore",
    "EntryStatus",
    "InvalidationScheduler",
    "MutationExecutor",
    "MutationRecord",
    "MutationStatus",
    "PollHandle",
    "QueryClient",
    "reconcile",
]
