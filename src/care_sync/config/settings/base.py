"""Config settings – Settings base class and CareSyncSettings."""
from __future__ import annotations

import dataclasses
import logging

from care_sync.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings."""

    _prefix: dataclasses.ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


@dataclasses.dataclass
class CareSyncSettings(Settings):
    """Runtime knobs for the sync layer, read from ``CARE_SYNC_*`` variables."""

    _prefix: dataclasses.ClassVar[str] = "CARE_SYNC"

    base_url: str = "http://localhost:5000"
    request_timeout_seconds: float = 10.0
    retry_max_attempts: int = 3
    notes_poll_interval_ms: int = 3000
    alerts_poll_interval_ms: int = 30000
    mutation_timeout_seconds: float = 15.0
    log_level: str = "INFO"
    log_json: bool = True

    def _validate(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise InvalidSettingValueError("base_url", self.base_url, "must be an http(s) URL")
        for name in ("request_timeout_seconds", "mutation_timeout_seconds"):
            if getattr(self, name) <= 0:
                raise InvalidSettingValueError(name, getattr(self, name), "must be positive")
        for name in ("notes_poll_interval_ms", "alerts_poll_interval_ms"):
            if getattr(self, name) < 100:
                raise InvalidSettingValueError(name, getattr(self, name), "must be at least 100ms")
        if self.retry_max_attempts < 1:
            raise InvalidSettingValueError("retry_max_attempts", self.retry_max_attempts, "must be >= 1")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise InvalidSettingValueError("log_level", self.log_level, "unknown logging level")


__all__ = ["CareSyncSettings", "Settings"]
