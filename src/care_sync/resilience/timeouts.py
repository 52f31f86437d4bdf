"""Resilience – TimeoutPolicy and run_with_deadline.

Mutations cannot be cancelled once started, so a deadline here only stops
*waiting*: the caller gets ``Err(MutationTimeoutError)`` while the mutation
keeps running and still commits or rolls back the cache when it resolves.
"""
from __future__ import annotations

import asyncio
import dataclasses
from typing import Any, Awaitable, Callable

from care_sync.kernel.errors import BaseError, MutationTimeoutError
from care_sync.kernel.types import Err, Result
from care_sync.observability.logging import get_logger

__all__ = ["TimeoutPolicy", "run_with_deadline"]

logger = get_logger(__name__)

_background: set[asyncio.Future[Any]] = set()


async def run_with_deadline(
    operation: Awaitable[Result[Any, BaseError]],
    timeout_seconds: float,
) -> Result[Any, BaseError]:
    """Race *operation* against a timer without ever cancelling it."""
    future = asyncio.ensure_future(operation)
    done, _ = await asyncio.wait({future}, timeout=timeout_seconds)
    if future in done:
        return future.result()
    _background.add(future)
    future.add_done_callback(_background.discard)
    logger.warning("mutation_deadline_exceeded", timeout_seconds=timeout_seconds)
    return Err(MutationTimeoutError(timeout_seconds))


@dataclasses.dataclass
class TimeoutPolicy:
    """Per-call-site deadline, e.g. longer for a medication create than a note delete."""
    timeout_seconds: float

    async def execute(self, func: Callable[[], Awaitable[Result[Any, BaseError]]]) -> Result[Any, BaseError]:
        return await run_with_deadline(func(), self.timeout_seconds)
