"""Adapters – Session boundary consumed by the remote client.

Token storage, login and expiry checks live in the host application; this
layer only needs a credential before each call and a hook to report a 401.
"""
from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from care_sync.observability.logging import get_logger

__all__ = ["CallbackSession", "Session", "StaticSession"]

logger = get_logger(__name__)


@runtime_checkable
class Session(Protocol):
    """Port: supply credentials and receive unauthorized notifications."""

    def get_credential(self) -> str | None: ...
    def on_unauthorized(self) -> None: ...


class StaticSession:
    """Holds a bearer token in memory; forgets it when the server rejects it."""

    def __init__(self, token: str | None = None, on_logout: Callable[[], None] | None = None) -> None:
        self._token = token
        self._on_logout = on_logout

    def set_token(self, token: str | None) -> None:
        self._token = token

    def get_credential(self) -> str | None:
        return self._token

    def on_unauthorized(self) -> None:
        logger.info("session_unauthorized")
        self._token = None
        if self._on_logout is not None:
            self._on_logout()


class CallbackSession:
    """Delegates to host-application callables."""

    def __init__(
        self,
        token_supplier: Callable[[], str | None],
        on_unauthorized: Callable[[], None] | None = None,
    ) -> None:
        self._token_supplier = token_supplier
        self._on_unauthorized = on_unauthorized

    def get_credential(self) -> str | None:
        return self._token_supplier()

    def on_unauthorized(self) -> None:
        if self._on_unauthorized is not None:
            self._on_unauthorized()
