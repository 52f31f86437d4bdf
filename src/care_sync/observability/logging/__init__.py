"""Observability – structured logging helpers."""
from care_sync.observability.logging.factory import configure_logging, get_logger
from care_sync.observability.logging.filters import DEFAULT_SENSITIVE_FIELDS, SensitiveFieldsFilter

__all__ = ["DEFAULT_SENSITIVE_FIELDS", "SensitiveFieldsFilter", "configure_logging", "get_logger"]
