"""HTTP adapter – remote operation clients returning ``Result`` values."""
from care_sync.adapters.http.client import RemoteClient, classify_response
from care_sync.adapters.http.retry_client import RetryingRemoteClient

__all__ = ["RemoteClient", "RetryingRemoteClient", "classify_response"]
