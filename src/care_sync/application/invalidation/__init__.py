"""Invalidation – settle-refetch and polling over the cache store."""
from care_sync.application.invalidation.poll import PollHandle
from care_sync.application.invalidation.scheduler import Fetcher, InvalidationScheduler

__all__ = ["Fetcher", "InvalidationScheduler", "PollHandle"]
