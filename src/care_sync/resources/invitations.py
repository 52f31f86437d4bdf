"""Resources – caregiver invitations addressed to the signed-in user."""
from __future__ import annotations

from typing import Any

from care_sync.application.invalidation import PollHandle
from care_sync.kernel.errors import BaseError, MalformedResponseError
from care_sync.kernel.types import Err, Ok, QueryKey, Result
from care_sync.resources.base import Resource

__all__ = ["InvitationResource"]

PATH = "/api/caregivers/invitations"


class InvitationResource(Resource):
    """``("invitations",)``; accepting or rejecting removes the invitation."""

    root = "invitations"

    async def fetch(self, key: QueryKey) -> Result[Any, BaseError]:  # noqa: ARG002
        result = await self.remote.get(PATH)
        if result.is_err():
            return result
        body = result.value
        if isinstance(body, list):
            return Ok(body)
        if isinstance(body, dict):
            invitations = body.get("invitations") or []
            if isinstance(invitations, list):
                return Ok(invitations)
        return Err(MalformedResponseError("Invalid invitations response from server"))

    def watch(self, interval_ms: int = 30000) -> PollHandle:
        return self.queries.poll(self.key(), interval_ms)

    async def accept(self, invitation_id: Any, *, invalidate: tuple[QueryKey, ...] = ()) -> Result[Any, BaseError]:
        """Accept; *invalidate* typically holds ``LovedOneResource.key()``."""
        return await self._respond(invitation_id, "accept", invalidate)

    async def reject(self, invitation_id: Any) -> Result[Any, BaseError]:
        return await self._respond(invitation_id, "reject", ())

    async def _respond(self, invitation_id: Any, action: str, invalidate: tuple[QueryKey, ...]) -> Result[Any, BaseError]:
        return await self.queries.mutate(
            self.key(),
            lambda current: self.without(current or [], invitation_id),
            lambda: self.remote.post(f"{PATH}/{invitation_id}/{action}"),
            reconcile=self.reconciler(),
            invalidate=invalidate,
        )
