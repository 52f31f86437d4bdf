"""Invalidation – PollHandle cancel token."""
from __future__ import annotations

import asyncio
from typing import Any

from care_sync.kernel.types import QueryKey

__all__ = ["PollHandle"]


class PollHandle:
    """Cancel token for a ``poll`` loop.

    Cancelling stops future ticks only; a refetch already started by a tick
    runs to completion. Usable as a (sync or async) context manager so the
    poll is released on every exit path::

        with scheduler.poll(key, 3000):
            await show_thread()
    """

    def __init__(self, key: QueryKey, interval_ms: int) -> None:
        self.key = key
        self.interval_ms = interval_ms
        self.ticks = 0
        self._cancelled = False
        self._task: asyncio.Task[None] | None = None

    def attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def __enter__(self) -> "PollHandle":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.cancel()

    async def __aenter__(self) -> "PollHandle":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.cancel()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"PollHandle(key={self.key!s}, interval_ms={self.interval_ms}, ticks={self.ticks}, {state})"
