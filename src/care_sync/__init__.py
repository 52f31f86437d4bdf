"""
care_sync – optimistic mutation and cache-consistency layer for the care
coordination API.

Import path convention::

    from care_sync.kernel.types import Ok, Err, QueryKey
    from care_sync.application import QueryClient
    from care_sync.adapters.http import RemoteClient
    from care_sync.resources import CareSync
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
