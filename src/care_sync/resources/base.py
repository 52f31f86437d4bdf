"""Resources – shared plumbing for the per-collection call sites."""
from __future__ import annotations

import abc
from typing import Any, Callable, ClassVar, Iterable

from care_sync.adapters.http import RemoteClient
from care_sync.application.mutations import reconcile
from care_sync.application.query_client import QueryClient
from care_sync.kernel.errors import BaseError, MalformedResponseError, ValidationError
from care_sync.kernel.types import Err, Ok, QueryKey, Result, TemporaryIdFactory

__all__ = ["ID_FIELD", "Resource", "empty_board", "require_fields"]

ID_FIELD = "_id"


def require_fields(payload: dict[str, Any], fields: Iterable[str], entity: str) -> ValidationError | None:
    """Return a ``ValidationError`` naming every blank required field, else ``None``."""
    missing = [
        {"field": f, "message": "required"}
        for f in fields
        if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload[f].strip())
    ]
    if not missing:
        return None
    names = ", ".join(m["field"] for m in missing)
    return ValidationError(f"{entity} {names} is required", errors=missing)


def empty_board() -> dict[str, Any]:
    return {"pending": [], "completed": [], "total": 0}


class Resource(abc.ABC):
    """One REST collection: its key, its fetcher and its mutations.

    Subclasses register themselves as the fetcher for ``root`` on the
    query client they are given.
    """

    root: ClassVar[str]

    def __init__(
        self,
        remote: RemoteClient,
        queries: QueryClient,
        ids: TemporaryIdFactory | None = None,
    ) -> None:
        self.remote = remote
        self.queries = queries
        self.ids = ids or TemporaryIdFactory()
        queries.register_fetcher(self.root, self.fetch)

    def key(self, *segments: Any) -> QueryKey:
        return QueryKey.of(self.root, *segments)

    @abc.abstractmethod
    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]: ...

    @staticmethod
    def reconciler(temp_id: str | None = None) -> Callable[[Any, Any], Any]:
        def _reconcile(optimistic: Any, confirmed: Any) -> Any:
            return reconcile(optimistic, confirmed, temp_id=temp_id, id_field=ID_FIELD)

        return _reconcile

    @staticmethod
    def without(items: list[dict[str, Any]], entity_id: Any) -> list[dict[str, Any]]:
        return [item for item in items if item.get(ID_FIELD) != entity_id]

    def board_response(self, result: Result[Any, BaseError], path: str) -> Result[Any, BaseError]:
        """Validate a ``{pending, completed, total}`` payload."""
        if result.is_err():
            return result
        body = result.value
        if not isinstance(body, dict) or not isinstance(body.get("pending"), list):
            return Err(MalformedResponseError(f"Invalid response structure from {path}"))
        pending = body["pending"]
        completed = body.get("completed") if isinstance(body.get("completed"), list) else []
        total = body.get("total")
        if not isinstance(total, int):
            total = len(pending) + len(completed)
        return Ok({**body, "pending": pending, "completed": completed, "total": total})
