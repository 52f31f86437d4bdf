"""Resources – medications of a loved one."""
from __future__ import annotations

from typing import Any

from care_sync.kernel.errors import BaseError
from care_sync.kernel.types import Err, QueryKey, Result
from care_sync.resources.base import ID_FIELD, Resource, empty_board, require_fields

__all__ = ["MedicationResource"]


class MedicationResource(Resource):
    root = "medications"

    def path(self, loved_one_id: Any) -> str:
        return f"/api/medications/loved-one/{loved_one_id}"

    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]:
        path = self.path(key.segments[1])
        return self.board_response(await self.remote.get(path), path)

    async def create(self, loved_one_id: Any, medication: dict[str, Any]) -> Result[Any, BaseError]:
        invalid = require_fields(medication, ("name",), "Medication")
        if invalid is not None:
            return Err(invalid)

        temp_id = self.ids.new()
        optimistic = {**medication, ID_FIELD: temp_id}

        def add(current: Any) -> dict[str, Any]:
            board = current or empty_board()
            return {**board, "pending": [*board["pending"], optimistic], "total": board["total"] + 1}

        return await self.queries.mutate(
            self.key(loved_one_id),
            add,
            lambda: self.remote.post(self.path(loved_one_id), medication),
            temp_id=temp_id,
            reconcile=self.reconciler(temp_id),
        )

    async def delete(self, loved_one_id: Any, medication_id: Any) -> Result[Any, BaseError]:
        def remove(current: Any) -> dict[str, Any]:
            board = current or empty_board()
            pending = self.without(board["pending"], medication_id)
            completed = self.without(board["completed"], medication_id)
            removed = len(board["pending"]) + len(board["completed"]) - len(pending) - len(completed)
            return {**board, "pending": pending, "completed": completed, "total": max(0, board["total"] - removed)}

        return await self.queries.mutate(
            self.key(loved_one_id),
            remove,
            lambda: self.remote.delete(f"/api/medications/{medication_id}"),
            reconcile=self.reconciler(),
        )
