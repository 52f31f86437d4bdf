"""Testing – in-memory doubles for the session and remote operations."""
from care_sync.testing.fakes import FakeSession, GatedOperation, ScriptedFetcher, wait_until

__all__ = ["FakeSession", "GatedOperation", "ScriptedFetcher", "wait_until"]
