"""Store migration from the legacy per-profile layout.

Legacy layout:
    <config-dir>/ccuse.json               ["work", "personal"]
    <config-dir>/<name>/settings.json     the full profile record

    Profile record:
        {"name": "work", "display_name": "Work", "env": {...},
         "permissions": {"enabled": true,
                         "mcp": [{"name": "fs", "enabled": true}],
                         "command": ["ls"]},
         "enabled_plugins": {"docs": true}, "always_thinking_enabled": null,
         "api_timeout_ms": null, "category": null, "source": "cc-switch",
         "created_at": "2024-01-01T00:00:00Z", "updated_at": "..."}

Current format (version 1):
    {"version": 1, "default": null, "profiles": [{"name": "work", ...}, ...]}

The legacy layout had no default profile. Profiles are read from the listed
names first, then from any other profile directory holding a settings file.
A profile whose record cannot be read or validated, or whose name differs only
in case from an earlier profile, is skipped with a warning.

Unlike the version 0 migration the result must be written back right away:
the legacy records sit where the derived settings files belong.
"""

import logging
import re
from typing import Any

from pydantic import ValidationError

from ..exceptions import CorruptStoreError
from ..models.schemas import CURRENT_STORE_VERSION, Profile, validate_profile_name
from ..models.settings_fields import settings_to_fields
from ..storage.persistence import StorePersistence
from .store_version_migration import StoreMigrationError

logger = logging.getLogger(__name__)

# Legacy record keys carried over unchanged
_PASSTHROUGH_FIELDS = ("display_name", "category", "source")
_TIMESTAMP_FIELDS = ("created_at", "updated_at")

# Fractional seconds beyond microseconds
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


class LegacyLayoutMigration:
    """Migration handler for the legacy list-of-names store file.

    Attributes:
        from_version: Version this migration upgrades from
        to_version: Version this migration produces
        description: Human-readable description of what this migration does
        skipped: Warnings for profiles left out by the last ``migrate`` call
    """

    from_version = 0
    to_version = 1
    description = "Collect per-profile records into a single store document"

    def __init__(self, persistence: StorePersistence):
        self.persistence = persistence
        self.skipped: list[str] = []

    def should_migrate(self, document: Any) -> bool:
        return isinstance(document, list)

    def migrate(self, document: list[Any]) -> dict[str, Any]:
        """Build a version 1 document from the legacy profile records.

        Args:
            document: Legacy store file content, a list of profile names

        Returns:
            The migrated document

        Raises:
            StoreMigrationError: If the list holds anything but names
        """
        for entry in document:
            if not isinstance(entry, str):
                raise StoreMigrationError(
                    f"Legacy store lists a non-name entry: {entry!r}"
                )

        names = list(dict.fromkeys(document))
        for name in self.persistence.profile_dir_names():
            if name not in names:
                logger.info(f"Found unlisted legacy profile directory: {name}")
                names.append(name)

        self.skipped = []
        profiles = []
        folded: set[str] = set()
        for name in names:
            if name.casefold() in folded:
                self.skipped.append(
                    f"Skipped legacy profile '{name}': "
                    "name differs only in case from another profile"
                )
                continue
            try:
                profile = self.convert_record(name)
            except (CorruptStoreError, ValueError) as e:
                self.skipped.append(f"Skipped legacy profile '{name}': {e}")
                continue
            folded.add(name.casefold())
            profiles.append(profile.model_dump(mode="json"))
            logger.info(f"Migrated legacy profile: {name}")

        return {"version": self.to_version, "default": None, "profiles": profiles}

    def convert_record(self, name: str) -> Profile:
        """Read one legacy profile record and convert it to a Profile.

        Raises:
            CorruptStoreError: If the record cannot be read or parsed
            ValueError: If the record has the wrong shape or fails validation
        """
        validate_profile_name(name)
        record = self.persistence.read_profile_settings(name)
        if not isinstance(record, dict):
            raise ValueError(
                f"record must be a JSON object, found {type(record).__name__}"
            )

        # Legacy records use snake_case where the settings casing is camelCase
        fields = settings_to_fields(
            {
                "env": record.get("env"),
                "permissions": record.get("permissions"),
                "enabledPlugins": record.get("enabled_plugins"),
                "alwaysThinkingEnabled": record.get("always_thinking_enabled"),
                "apiTimeoutMs": record.get("api_timeout_ms"),
            }
        )
        for key in _PASSTHROUGH_FIELDS:
            if record.get(key) is not None:
                fields[key] = record[key]
        for key in _TIMESTAMP_FIELDS:
            value = record.get(key)
            if isinstance(value, str):
                value = _EXTRA_FRACTION.sub(r"\1", value)
            if value is not None:
                fields[key] = value

        try:
            return Profile.model_validate({"name": name, **fields})
        except ValidationError as e:
            raise ValueError(str(e)) from e

    def validate(self, document: Any) -> list[str]:
        """Return warnings about the legacy document and the skipped profiles."""
        warnings = []
        if isinstance(document, list):
            warnings.append(
                "DEPRECATED: store file lists profile names only; "
                f"converted to version {CURRENT_STORE_VERSION} and written back."
            )
        warnings.extend(self.skipped)
        return warnings
