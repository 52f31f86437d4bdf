"""Mutations – optimistic mutation executor and reconciliation."""
from care_sync.application.mutations.executor import MutationExecutor, Reconciler, Settler
from care_sync.application.mutations.reconcile import DEFAULT_ID_FIELD, reconcile, replace_entity
from care_sync.application.mutations.record import MutationRecord, MutationStatus, RemoteOperation

__all__ = [
    "DEFAULT_ID_FIELD",
    "MutationExecutor",
    "MutationRecord",
    "MutationStatus",
    "Reconciler",
    "RemoteOperation",
    "Settler",
    "reconcile",
    "replace_entity",
]
