"""Resources – CareSync, one object wiring settings, session and resources."""
from __future__ import annotations

from typing import Any

from care_sync.adapters.http import RemoteClient, RetryingRemoteClient
from care_sync.adapters.session import Session
from care_sync.application.invalidation import PollHandle
from care_sync.application.query_client import QueryClient
from care_sync.config.settings import CareSyncSettings, load_settings
from care_sync.kernel.errors import BaseError
from care_sync.kernel.types import Result, TemporaryIdFactory
from care_sync.observability.logging import configure_logging
from care_sync.resilience import TimeoutPolicy
from care_sync.resources.base import ID_FIELD
from care_sync.resources.care_plans import CarePlanResource
from care_sync.resources.invitations import InvitationResource
from care_sync.resources.loved_ones import LovedOneResource
from care_sync.resources.medical_history import MedicalHistoryResource
from care_sync.resources.medications import MedicationResource
from care_sync.resources.notes import NoteResource
from care_sync.resources.tasks import TaskResource

__all__ = ["CareSync"]


class CareSync:
    """Entry point for a host application::

        async with CareSync(load_settings(), StaticSession(token)) as sync:
            unsubscribe = sync.queries.subscribe(sync.tasks.key(lid), render)
            await sync.queries.fetch(sync.tasks.key(lid))
            outcome = await sync.guarded(sync.tasks.create(lid, {"title": "Walk"}))
    """

    def __init__(
        self,
        settings: CareSyncSettings,
        session: Session,
        *,
        remote: RemoteClient | None = None,
        **client_kwargs: Any,
    ) -> None:
        self.settings = settings
        self.remote = remote or RetryingRemoteClient(
            settings.base_url,
            session,
            timeout=settings.request_timeout_seconds,
            max_attempts=settings.retry_max_attempts,
            **client_kwargs,
        )
        self.queries = QueryClient(id_field=ID_FIELD)
        self.timeouts = TimeoutPolicy(settings.mutation_timeout_seconds)
        ids = TemporaryIdFactory()
        self.tasks = TaskResource(self.remote, self.queries, ids)
        self.medications = MedicationResource(self.remote, self.queries, ids)
        self.notes = NoteResource(self.remote, self.queries, ids)
        self.care_plans = CarePlanResource(self.remote, self.queries, ids)
        self.invitations = InvitationResource(self.remote, self.queries, ids)
        self.loved_ones = LovedOneResource(self.remote, self.queries, ids)
        self.medical_history = MedicalHistoryResource(self.remote, self.queries, ids)

    @classmethod
    def from_env(cls, session: Session, env_file: str | None = None, **client_kwargs: Any) -> "CareSync":
        """Load ``CARE_SYNC_*`` settings and configure logging from them."""
        settings = load_settings(env_file)
        configure_logging(settings.log_level, json=settings.log_json)
        return cls(settings, session, **client_kwargs)

    async def guarded(self, mutation: Any) -> Result[Any, BaseError]:
        """Await *mutation* under the configured caller-side deadline."""
        return await self.timeouts.execute(lambda: mutation)

    def watch_notes(self, loved_one_id: Any) -> PollHandle:
        return self.notes.watch_thread(loved_one_id, self.settings.notes_poll_interval_ms)

    def watch_invitations(self) -> PollHandle:
        return self.invitations.watch(self.settings.alerts_poll_interval_ms)

    async def accept_invitation(self, invitation_id: Any) -> Result[Any, BaseError]:
        """Accept and settle the loved-ones list the invitation adds to."""
        return await self.invitations.accept(invitation_id, invalidate=(self.loved_ones.key(),))

    async def __aenter__(self) -> "CareSync":
        await self.remote.__aenter__()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.queries.aclose()
        await self.remote.__aexit__(*args)
