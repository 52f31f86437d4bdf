"""Resources – loved ones the signed-in caregiver looks after."""
from __future__ import annotations

from typing import Any

from care_sync.kernel.errors import BaseError, MalformedResponseError
from care_sync.kernel.types import Err, Ok, QueryKey, Result
from care_sync.resources.base import ID_FIELD, Resource, require_fields

__all__ = ["LovedOneResource"]

LIST_PATH = "/api/caregivers/loved-ones"
ADD_PATH = "/api/caregivers/add-loved-one"


class LovedOneResource(Resource):
    """``("lovedOnes",)`` → list of loved ones.

    Accepting an invitation grows this list, so invitation call sites pass
    ``key()`` as an extra key to settle.
    """

    root = "lovedOnes"

    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]:  # noqa: ARG002
        result = await self.remote.get(LIST_PATH)
        if result.is_err():
            return result
        body = result.value
        if isinstance(body, dict):
            body = body.get("lovedOnes")
        if not isinstance(body, list):
            return Err(MalformedResponseError("Invalid loved ones response from server"))
        return Ok(body)

    async def create(self, loved_one: dict[str, Any]) -> Result[Any, BaseError]:
        invalid = require_fields(loved_one, ("name", "age", "medical_history"), "Loved one")
        if invalid is not None:
            return Err(invalid)

        temp_id = self.ids.new()
        optimistic = {**loved_one, ID_FIELD: temp_id}

        async def add() -> Result[Any, BaseError]:
            result = await self.remote.post(ADD_PATH, loved_one)
            if result.is_ok() and isinstance(result.value, dict) and isinstance(result.value.get("lovedOne"), dict):
                return Ok(result.value["lovedOne"])
            return result

        return await self.queries.mutate(
            self.key(),
            lambda current: [*(current or []), optimistic],
            add,
            temp_id=temp_id,
            reconcile=self.reconciler(temp_id),
        )
