"""HTTP adapter – RetryingRemoteClient (bounded retry of network failures)."""
from __future__ import annotations

from typing import Any

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt, wait_exponential_jitter

from care_sync.adapters.http.client import RemoteClient
from care_sync.adapters.session import Session
from care_sync.kernel.errors import BaseError, NetworkError
from care_sync.kernel.types import Result
from care_sync.observability.logging import get_logger

__all__ = ["RetryingRemoteClient"]

logger = get_logger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET"})


def _is_network_failure(result: Result[Any, BaseError]) -> bool:
    return result.is_err() and isinstance(result.error, NetworkError)


def _last_result(state: RetryCallState) -> Result[Any, BaseError]:
    return state.outcome.result()  # type: ignore[union-attr]


def _log_retry(state: RetryCallState) -> None:
    logger.info("remote_call_retry", attempt=state.attempt_number, fn_args=state.args[:2])


class RetryingRemoteClient(RemoteClient):
    """Retry ``NetworkError`` only, and only for *retry_methods*.

    Writes are excluded by default: a POST that reached the server before the
    connection dropped must not be replayed.
    """

    def __init__(
        self,
        base_url: str,
        session: Session,
        *,
        timeout: float = 10.0,
        max_attempts: int = 3,
        retry_methods: frozenset[str] = IDEMPOTENT_METHODS,
        wait: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(base_url, session, timeout=timeout, **kwargs)
        self._max_attempts = max_attempts
        self._retry_methods = frozenset(m.upper() for m in retry_methods)
        self._wait = wait or wait_exponential_jitter(initial=0.1, max=2.0)

    async def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Result[Any, BaseError]:
        send = super().call
        if method.upper() not in self._retry_methods or self._max_attempts <= 1:
            return await send(method, path, body, params=params, authenticated=authenticated)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_result(_is_network_failure),
            retry_error_callback=_last_result,
            before_sleep=_log_retry,
        )
        return await retrying(send, method, path, body, params=params, authenticated=authenticated)
