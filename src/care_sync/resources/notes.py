"""Resources – daily notes thread of a loved one.

The notes list is kept newest first, both as fetched and as optimistically
edited, and is polled every few seconds while a thread is open.
"""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from care_sync.application.invalidation import PollHandle
from care_sync.kernel.errors import BaseError, MalformedResponseError
from care_sync.kernel.types import Err, Ok, QueryKey, Result
from care_sync.resources.base import ID_FIELD, Resource, require_fields

__all__ = ["NoteResource", "sort_newest_first"]

_EPOCH = datetime.min.replace(tzinfo=UTC)


def _note_date(note: dict[str, Any]) -> datetime:
    raw = note.get("date")
    if not isinstance(raw, str):
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def sort_newest_first(notes: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(notes, key=_note_date, reverse=True)


class NoteResource(Resource):
    root = "notes"

    def path(self, loved_one_id: Any) -> str:
        return f"/api/daily-notes/loved-one/{loved_one_id}"

    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]:
        result = await self.remote.get(self.path(key.segments[1]))
        if result.is_err():
            return result
        if not isinstance(result.value, list):
            return Err(MalformedResponseError("Invalid notes response from server"))
        return Ok(sort_newest_first(result.value))

    def watch_thread(self, loved_one_id: Any, interval_ms: int = 3000) -> PollHandle:
        """Poll the thread while it is on screen; cancel the handle on leave."""
        return self.queries.poll(self.key(loved_one_id), interval_ms)

    async def create(self, loved_one_id: Any, note: dict[str, Any]) -> Result[Any, BaseError]:
        invalid = require_fields(note, ("content",), "Note")
        if invalid is not None:
            return Err(invalid)

        temp_id = self.ids.new()
        optimistic = {"date": datetime.now(UTC).isoformat(), **note, ID_FIELD: temp_id}

        return await self.queries.mutate(
            self.key(loved_one_id),
            lambda current: sort_newest_first([optimistic, *(current or [])]),
            lambda: self.remote.post(self.path(loved_one_id), note),
            temp_id=temp_id,
            reconcile=self.reconciler(temp_id),
        )

    async def delete(self, loved_one_id: Any, note_id: Any) -> Result[Any, BaseError]:
        return await self.queries.mutate(
            self.key(loved_one_id),
            lambda current: self.without(current or [], note_id),
            lambda: self.remote.delete(f"{self.path(loved_one_id)}/note/{note_id}"),
            reconcile=self.reconciler(),
        )
