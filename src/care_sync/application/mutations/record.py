"""Mutations – MutationRecord and MutationStatus."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from care_sync.kernel.errors import BaseError
from care_sync.kernel.types import QueryKey, Result

__all__ = ["MutationRecord", "MutationStatus", "RemoteOperation"]

RemoteOperation = Callable[[], Awaitable["Result[Any, BaseError]"]]


class MutationStatus(str, Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class MutationRecord:
    """One optimistic mutation, owned by the executor until it settles."""

    key: QueryKey
    remote_operation: RemoteOperation
    optimistic_value: Any = None
    temp_id: str | None = None
    status: MutationStatus = MutationStatus.PENDING
    generation: int = 0
    error: BaseError | None = None
    started_at: float = field(default_factory=time.monotonic)
    settled_at: float | None = None

    @property
    def duration_ms(self) -> float | None:
        if self.settled_at is None:
            return None
        return (self.settled_at - self.started_at) * 1000

    def mark(self, status: MutationStatus, error: BaseError | None = None) -> None:
        self.status = status
        self.error = error
        self.settled_at = time.monotonic()
