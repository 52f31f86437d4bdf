"""Application cache – keyed store with subscribers and rollback snapshots."""
from care_sync.application.cache.entry import CacheEntry, EntryStatus, Subscriber
from care_sync.application.cache.store import CacheStore

__all__ = ["CacheEntry", "CacheStore", "EntryStatus", "Subscriber"]
