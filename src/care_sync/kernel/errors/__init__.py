"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError              (domain.py)
    │   ├── ValidationError
    │   └── NotFoundError
    ├── ApplicationError         (application.py)
    │   ├── UnauthorizedError
    │   │   └── ForbiddenError
    │   └── MutationTimeoutError
    └── InfrastructureError      (infrastructure.py)
        ├── NetworkError
        └── ServerError
            └── MalformedResponseError

``retryable`` is true for ``NetworkError`` and ``MutationTimeoutError`` only.
"""

from care_sync.kernel.errors.application import (
    ApplicationError,
    ForbiddenError,
    MutationTimeoutError,
    UnauthorizedError,
)
from care_sync.kernel.errors.base import BaseError
from care_sync.kernel.errors.domain import DomainError, NotFoundError, ValidationError
from care_sync.kernel.errors.infrastructure import (
    InfrastructureError,
    MalformedResponseError,
    NetworkError,
    ServerError,
)

__all__ = [
    "ApplicationError",
    "BaseError",
    "DomainError",
    "ForbiddenError",
    "InfrastructureError",
    "MalformedResponseError",
    "MutationTimeoutError",
    "NetworkError",
    "NotFoundError",
    "ServerError",
    "UnauthorizedError",
    "ValidationError",
]
