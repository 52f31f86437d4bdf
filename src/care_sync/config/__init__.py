"""Configuration – settings loading and validation."""
from care_sync.config.settings import CareSyncSettings, SettingsFactory, load_settings
from care_sync.config.validation import ConfigError, InvalidSettingValueError

__all__ = [
    "CareSyncSettings",
    "ConfigError",
    "InvalidSettingValueError",
    "SettingsFactory",
    "load_settings",
]
