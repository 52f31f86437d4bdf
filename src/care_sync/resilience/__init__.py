"""Resilience – caller-side deadlines for mutations."""
from care_sync.resilience.timeouts import TimeoutPolicy, run_with_deadline

__all__ = ["TimeoutPolicy", "run_with_deadline"]
