"""Store document migration from the unversioned (version 0) layout.

Legacy format:
    {"profiles": [{"name": "work", "is_default": true, ...}, ...]}

Current format (version 1):
    {"version": 1, "default": "work", "profiles": [{"name": "work", ...}, ...]}

The migration only rewrites the in-memory document. The upgraded form reaches
disk the next time the store is persisted.
"""

import logging
from typing import Any

from ..models.schemas import CURRENT_STORE_VERSION

logger = logging.getLogger(__name__)


class StoreMigrationError(ValueError):
    """Document cannot be upgraded to the current version."""

    pass


class StoreVersionMigration:
    """Migration handler for unversioned store documents.

    Attributes:
        from_version: Version this migration upgrades from
        to_version: Version this migration produces
        description: Human-readable description of what this migration does
    """

    from_version = 0
    to_version = 1
    description = "Add schema version and move per-profile default flag to the store"

    def should_migrate(self, document: dict[str, Any]) -> bool:
        """Check if this document needs migration.

        Args:
            document: Raw store document

        Returns:
            True if the document has no version or version 0
        """
        return document.get("version", 0) == self.from_version

    def migrate(self, document: dict[str, Any]) -> dict[str, Any]:
        """Upgrade a version 0 document.

        - ``version`` is set to 1
        - ``default`` is derived from a legacy ``is_default: true`` profile
          when the top-level key is absent
        - per-profile ``is_default`` keys are removed

        Args:
            document: Raw store document; modified in place

        Returns:
            The migrated document

        Raises:
            StoreMigrationError: If more than one profile is flagged default
        """
        profiles = document.setdefault("profiles", [])
        if not isinstance(profiles, list):
            raise StoreMigrationError("'profiles' must be a list")

        flagged = []
        for entry in profiles:
            if isinstance(entry, dict) and entry.pop("is_default", False):
                flagged.append(entry.get("name"))

        if len(flagged) > 1:
            raise StoreMigrationError(
                f"Multiple profiles marked default: {', '.join(map(str, flagged))}"
            )

        if document.get("default") is None and flagged:
            document["default"] = flagged[0]
            logger.info(f"Migrated legacy default flag: default='{flagged[0]}'")
        document.setdefault("default", None)

        document["version"] = self.to_version
        return document

    def validate(self, document: dict[str, Any]) -> list[str]:
        """Return warnings about the document's version.

        Args:
            document: Raw store document

        Returns:
            List of warning messages (empty list if no warnings)
        """
        warnings = []
        version = document.get("version")
        if version is None:
            warnings.append(
                "DEPRECATED: store document has no 'version'; "
                "it will be upgraded on the next write."
            )
        return warnings


MIGRATIONS = [StoreVersionMigration()]


def migrate_document(document: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Bring a raw store document up to the current schema version.

    Args:
        document: Raw store document as parsed from JSON

    Returns:
        Tuple of (migrated_document, warnings_list)

    Raises:
        StoreMigrationError: If the document is newer than supported or a
            migration step fails
    """
    version = document.get("version", 0)
    if not isinstance(version, int) or isinstance(version, bool) or version < 0:
        raise StoreMigrationError(f"Invalid store version: {version!r}")
    if version > CURRENT_STORE_VERSION:
        raise StoreMigrationError(
            f"Store version {version} is newer than supported "
            f"version {CURRENT_STORE_VERSION}"
        )

    warnings = []
    for migration in MIGRATIONS:
        warnings.extend(migration.validate(document))
        if migration.should_migrate(document):
            logger.info(
                f"Applying store migration {migration.from_version} -> "
                f"{migration.to_version}"
            )
            document = migration.migrate(document)

    for warning in warnings:
        logger.warning(warning)

    return document, warnings
