"""Config settings – 12-factor env-based configuration."""
from care_sync.config.settings.base import CareSyncSettings, Settings
from care_sync.config.settings.factory import SettingsFactory, load_settings
from care_sync.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = [
    "CareSyncSettings",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "Settings",
    "SettingsFactory",
    "SettingsLoader",
    "load_settings",
]
