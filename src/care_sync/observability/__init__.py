"""Observability – structured logging."""
from care_sync.observability.logging import SensitiveFieldsFilter, configure_logging, get_logger

__all__ = ["SensitiveFieldsFilter", "configure_logging", "get_logger"]
