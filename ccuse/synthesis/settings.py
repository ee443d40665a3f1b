"""Profile to settings-file synthesis.

A settings file is a pure function of one profile, written in the external
tool's native schema. It is never read back into the store and never merged
with whatever is on disk: every write is a full overwrite.
"""

import logging
from pathlib import Path
from typing import Any

from ..exceptions import WriteError
from ..models.schemas import Profile
from ..storage.persistence import StorePersistence, serialize_json

logger = logging.getLogger(__name__)

SettingsDocument = dict[str, Any]


class SettingsSynthesizer:
    """Derives and writes per-profile settings files."""

    def __init__(self, persistence: StorePersistence):
        self.persistence = persistence

    def synthesize(self, profile: Profile) -> SettingsDocument:
        """Map a profile onto the tool's settings schema.

        Optional fields that are unset are omitted so the tool applies its
        own defaults.

        Args:
            profile: Source profile

        Returns:
            Settings document with tool-native key casing
        """
        document: SettingsDocument = {
            "env": dict(sorted(profile.env.items())),
            "permissions": {
                "enabled": profile.permissions.enabled,
                "mcp": sorted(profile.permissions.mcp),
                "command": sorted(profile.permissions.command),
            },
        }

        if profile.enabled_plugins:
            document["enabledPlugins"] = {
                plugin: True for plugin in sorted(profile.enabled_plugins)
            }
        if profile.always_thinking_enabled is not None:
            document["alwaysThinkingEnabled"] = profile.always_thinking_enabled
        if profile.api_timeout_ms is not None:
            document["apiTimeoutMs"] = profile.api_timeout_ms

        return document

    def render(self, profile: Profile) -> str:
        """Serialize the synthesized document with stable key ordering."""
        return serialize_json(self.synthesize(profile))

    def settings_path(self, profile_name: str) -> Path:
        return self.persistence.profile_settings_path(profile_name)

    def write(self, profile: Profile) -> Path:
        """Write the profile's settings file.

        The write is skipped when the file already holds identical bytes.

        Args:
            profile: Source profile

        Returns:
            Path of the settings file

        Raises:
            WriteError: If the directory or file cannot be written
        """
        path = self.settings_path(profile.name)
        content = self.render(profile)

        if self._is_current(path, content):
            logger.debug(f"Settings file already current: {path}")
            return path

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(
                f"Failed to create settings directory {path.parent}: {e}"
            ) from e

        self.persistence.atomic_write(path, content)
        logger.info(f"Wrote settings for profile '{profile.name}': {path}")
        return path

    def remove(self, profile_name: str) -> bool:
        """Delete a profile's settings directory."""
        return self.persistence.remove_profile_dir(profile_name)

    def _is_current(self, path: Path, content: str) -> bool:
        try:
            return path.read_bytes() == content.encode("utf-8")
        except OSError:
            return False
