"""Settings-file synthesis."""

from .settings import SettingsDocument, SettingsSynthesizer

__all__ = ["SettingsDocument", "SettingsSynthesizer"]
