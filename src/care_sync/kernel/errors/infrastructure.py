"""Infrastructure errors – transport failures and bad server responses."""

from __future__ import annotations

from typing import Any

from care_sync.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """I/O failure that is not caused by the request content."""

    default_code = "infrastructure_error"


class NetworkError(InfrastructureError):
    """The API could not be reached (DNS, connect, read timeout, reset)."""

    default_code = "network_error"
    retryable = True

    def __init__(self, message: str = "Network unreachable", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ServerError(InfrastructureError):
    """The API answered with a failure status or an unusable body."""

    default_code = "server_error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        if message is None:
            message = f"Server error (HTTP {status_code})" if status_code else "Server error"
        super().__init__(message, **kwargs)
        self.status_code = status_code


class MalformedResponseError(ServerError):
    """The response body could not be interpreted (bad JSON, missing id)."""

    default_code = "malformed_response"


__all__ = [
    "InfrastructureError",
    "MalformedResponseError",
    "NetworkError",
    "ServerError",
]
