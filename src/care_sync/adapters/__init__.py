"""Adapters – session boundary and HTTP remote operation client."""
from care_sync.adapters.http import RemoteClient, RetryingRemoteClient
from care_sync.adapters.session import CallbackSession, Session, StaticSession

__all__ = ["CallbackSession", "RemoteClient", "RetryingRemoteClient", "Session", "StaticSession"]
