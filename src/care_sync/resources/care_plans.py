"""Resources – care plans of a loved one."""
from __future__ import annotations

from typing import Any

from care_sync.kernel.errors import BaseError, MalformedResponseError
from care_sync.kernel.types import Err, QueryKey, Result
from care_sync.resources.base import ID_FIELD, Resource, require_fields

__all__ = ["CarePlanResource"]


class CarePlanResource(Resource):
    root = "carePlans"

    def path(self, loved_one_id: Any, plan_id: Any | None = None) -> str:
        base = f"/api/care-plans/loved-one/{loved_one_id}"
        return base if plan_id is None else f"{base}/{plan_id}"

    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]:
        result = await self.remote.get(self.path(key.segments[1]))
        if result.is_ok() and not isinstance(result.value, list):
            return Err(MalformedResponseError("Invalid care plans response from server"))
        return result

    async def create(self, loved_one_id: Any, plan: dict[str, Any]) -> Result[Any, BaseError]:
        invalid = require_fields(plan, ("title",), "Care plan")
        if invalid is not None:
            return Err(invalid)

        body = {**plan, "loved_one": str(loved_one_id)}
        temp_id = self.ids.new()
        optimistic = {**body, ID_FIELD: temp_id}
        return await self.queries.mutate(
            self.key(loved_one_id),
            lambda current: [*(current or []), optimistic],
            lambda: self.remote.post(self.path(loved_one_id), body),
            temp_id=temp_id,
            reconcile=self.reconciler(temp_id),
        )

    async def update(self, loved_one_id: Any, plan_id: Any, changes: dict[str, Any]) -> Result[Any, BaseError]:
        body = {**changes, "loved_one": str(loved_one_id)}

        def patch(current: Any) -> list[dict[str, Any]]:
            return [
                {**plan, **changes} if plan.get(ID_FIELD) == plan_id else plan
                for plan in (current or [])
            ]

        return await self.queries.mutate(
            self.key(loved_one_id),
            patch,
            lambda: self.remote.put(self.path(loved_one_id, plan_id), body),
            reconcile=self.reconciler(),
        )

    async def delete(self, loved_one_id: Any, plan_id: Any) -> Result[Any, BaseError]:
        return await self.queries.mutate(
            self.key(loved_one_id),
            lambda current: self.without(current or [], plan_id),
            lambda: self.remote.delete(self.path(loved_one_id, plan_id)),
            reconcile=self.reconciler(),
        )
