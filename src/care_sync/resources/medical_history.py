"""Resources – medical history entries of a loved one."""
from __future__ import annotations

from typing import Any

from care_sync.kernel.errors import BaseError, MalformedResponseError, NotFoundError
from care_sync.kernel.types import Err, Ok, QueryKey, Result
from care_sync.resources.base import ID_FIELD, Resource, require_fields

__all__ = ["MedicalHistoryResource"]


class MedicalHistoryResource(Resource):
    """``("medicalHistory", lovedOneId)`` → list of history entries.

    The server answers 404 for a loved one without history; that reads as an
    empty list. A single entry object is wrapped into a list.
    """

    root = "medicalHistory"

    def path(self, loved_one_id: Any) -> str:
        return f"/api/medical-history/loved-one/{loved_one_id}"

    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]:
        result = await self.remote.get(self.path(key.segments[1]))
        if result.is_err():
            return Ok([]) if isinstance(result.error, NotFoundError) else result
        body = result.value
        if isinstance(body, dict):
            return Ok([body])
        if not isinstance(body, list):
            return Err(MalformedResponseError("Invalid medical history response from server"))
        return Ok(body)

    async def create(self, loved_one_id: Any, entry: dict[str, Any]) -> Result[Any, BaseError]:
        invalid = require_fields(entry, ("notes",), "Medical history")
        if invalid is not None:
            return Err(invalid)

        temp_id = self.ids.new()
        optimistic = {**entry, ID_FIELD: temp_id}
        return await self.queries.mutate(
            self.key(loved_one_id),
            lambda current: [*(current or []), optimistic],
            lambda: self.remote.post(self.path(loved_one_id), entry),
            temp_id=temp_id,
            reconcile=self.reconciler(temp_id),
        )

    async def update(self, loved_one_id: Any, entry_id: Any, section: dict[str, Any]) -> Result[Any, BaseError]:
        """Replace the sections named in *section* (e.g. ``{"allergies": [...]}``) of one entry."""

        def patch(current: Any) -> list[dict[str, Any]]:
            return [
                {**item, **section} if item.get(ID_FIELD) == entry_id else item
                for item in (current or [])
            ]

        return await self.queries.mutate(
            self.key(loved_one_id),
            patch,
            lambda: self.remote.post(self.path(loved_one_id), section),
            reconcile=self.reconciler(),
        )
