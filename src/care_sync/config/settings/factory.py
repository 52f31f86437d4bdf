"""Config settings – SettingsFactory and load_settings."""
from __future__ import annotations

import dataclasses
from typing import Any, Sequence, TypeVar

from care_sync.config.settings.base import CareSyncSettings, Settings
from care_sync.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader
from care_sync.config.validation.errors import ConfigError

T = TypeVar("T", bound=Settings)


class SettingsFactory:
    """Merge outputs from multiple loaders, apply overrides, and construct
    a settings dataclass in one step.

    Loaders are applied in order; later loaders override earlier ones for
    overlapping fields. *overrides* (if provided) take the highest priority.
    Invalid values propagate as ``InvalidSettingValueError``.
    """

    @staticmethod
    def create(
        settings_cls: type[T],
        loaders: Sequence[SettingsLoader] | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> T:
        """
        Parameters
        ----------
        settings_cls:
            The :class:`~care_sync.config.settings.base.Settings` subclass to
            construct.
        loaders:
            Ordered sequence of loaders. Later loaders win on field conflicts.
        overrides:
            Explicit key-value pairs applied after all loaders, useful for
            tests and local development.

        Raises
        ------
        InvalidSettingValueError
            When a merged value fails the settings class' validation.
        """
        merged: dict[str, Any] = {}

        for loader in loaders or []:
            instance = loader.load(settings_cls)
            for field in dataclasses.fields(instance):  # type: ignore[arg-type]
                merged[field.name] = getattr(instance, field.name)

        if overrides:
            merged.update(overrides)

        try:
            return settings_cls(**merged)
        except ConfigError:
            raise
        except Exception as exc:
            raise ConfigError(f"Failed to construct {settings_cls.__name__}: {exc}") from exc


def load_settings(env_file: str | None = None, **overrides: Any) -> CareSyncSettings:
    """Environment first, then an optional ``.env`` file, then *overrides*."""
    loaders: list[SettingsLoader] = [EnvSettingsLoader()]
    if env_file is not None:
        loaders.append(DotenvSettingsLoader(env_file))
    return SettingsFactory.create(CareSyncSettings, loaders, overrides or None)


__all__ = ["SettingsFactory", "load_settings"]
