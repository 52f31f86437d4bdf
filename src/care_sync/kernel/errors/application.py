"""Application-layer errors – session and caller-side concerns."""

from __future__ import annotations

from typing import Any

from care_sync.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern."""

    default_code = "application_error"


class UnauthorizedError(ApplicationError):
    """Missing, expired or rejected credential.

    Escalated to the session's ``on_unauthorized`` hook by the remote client.
    """

    default_code = "unauthorized"

    def __init__(self, message: str = "Authentication required", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ForbiddenError(UnauthorizedError):
    """Authenticated caregiver lacks access to the resource."""

    default_code = "forbidden"

    def __init__(self, message: str = "Access denied", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class MutationTimeoutError(ApplicationError):
    """A caller-side deadline elapsed before the mutation settled.

    The mutation itself keeps running and still reconciles the cache.
    """

    default_code = "mutation_timeout"
    retryable = True

    def __init__(self, timeout_seconds: float, **kwargs: Any) -> None:
        super().__init__(f"Operation did not settle within {timeout_seconds}s", **kwargs)
        self.timeout_seconds = timeout_seconds


__all__ = [
    "ApplicationError",
    "ForbiddenError",
    "MutationTimeoutError",
    "UnauthorizedError",
]
