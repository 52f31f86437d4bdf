"""Resources – daily tasks of a loved one."""
from __future__ import annotations

from typing import Any

from care_sync.kernel.errors import BaseError
from care_sync.kernel.types import Err, QueryKey, Result
from care_sync.resources.base import ID_FIELD, Resource, empty_board, require_fields

__all__ = ["TaskResource"]


class TaskResource(Resource):
    """``("tasks", lovedOneId)`` → ``{pending, completed, total}``."""

    root = "tasks"

    def path(self, loved_one_id: Any) -> str:
        return f"/api/tasks/loved-one/{loved_one_id}"

    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]:
        path = self.path(key.segments[1])
        return self.board_response(await self.remote.get(path), path)

    async def create(self, loved_one_id: Any, task: dict[str, Any]) -> Result[Any, BaseError]:
        invalid = require_fields(task, ("title",), "Task")
        if invalid is not None:
            return Err(invalid)

        temp_id = self.ids.new()
        optimistic_task = {**task, ID_FIELD: temp_id}

        def add(current: Any) -> dict[str, Any]:
            board = current or empty_board()
            return {
                **board,
                "pending": [*board["pending"], optimistic_task],
                "total": board["total"] + 1,
            }

        return await self.queries.mutate(
            self.key(loved_one_id),
            add,
            lambda: self.remote.post(self.path(loved_one_id), task),
            temp_id=temp_id,
            reconcile=self.reconciler(temp_id),
        )

    async def delete(self, loved_one_id: Any, task_id: Any) -> Result[Any, BaseError]:
        def remove(current: Any) -> dict[str, Any]:
            board = current or empty_board()
            pending = self.without(board["pending"], task_id)
            completed = self.without(board["completed"], task_id)
            removed = len(board["pending"]) + len(board["completed"]) - len(pending) - len(completed)
            return {**board, "pending": pending, "completed": completed, "total": max(0, board["total"] - removed)}

        return await self.queries.mutate(
            self.key(loved_one_id),
            remove,
            lambda: self.remote.delete(f"/api/tasks/{task_id}"),
            reconcile=self.reconciler(),
        )
