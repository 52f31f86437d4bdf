"""Resources – per-collection fetchers and optimistic call sites."""
from care_sync.resources.base import ID_FIELD, Resource, require_fields
from care_sync.resources.bundle import CareSync
from care_sync.resources.care_plans import CarePlanResource
from care_sync.resources.invitations import InvitationResource
from care_sync.resources.loved_ones import LovedOneResource
from care_sync.resources.medical_history import MedicalHistoryResource
from care_sync.resources.medications import MedicationResource
from care_sync.resources.notes import NoteResource, sort_newest_first
from care_sync.resources.tasks import TaskResource

__all__ = [
    "CarePlanResource",
    "CareSync",
    "ID_FIELD",
    "InvitationResource",
    "LovedOneResource",
    "MedicalHistoryResource",
    "MedicationResource",
    "NoteResource",
    "Resource",
    "TaskResource",
    "require_fields",
    "sort_newest_first",
]
