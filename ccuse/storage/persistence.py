"""Profile store persistence.

Owns the on-disk layout under the configuration directory:

    <config-dir>/ccuse.json                 store document
    <config-dir>/<profile-name>/settings.json  derived settings file

The legacy layout kept a list of names in the store file and the full
profile record in each settings file; it is read here and converted by
``LegacyLayoutMigration``.

All writes go through ``atomic_write`` (temporary file in the target
directory, fsync, then replace) so an interrupted write never leaves a
truncated file behind.
"""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import CorruptStoreError, WriteError


def serialize_json(data: Any) -> str:
    """Serialize data with stable key ordering.

    Args:
        data: JSON-compatible data

    Returns:
        Pretty-printed JSON terminated by a newline
    """
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


class StorePersistence:
    """File layout and atomic IO for the profile store.

    Provides:
    - Store document load/save with atomic replace
    - Per-profile settings directory paths
    - Settings directory move/removal for rename and remove
    """

    def __init__(
        self,
        config_dir: Union[str, Path],
        store_filename: str = "ccuse.json",
        settings_filename: str = "settings.json",
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize persistence manager.

        Args:
            config_dir: Directory holding the store file and profile directories
            store_filename: Name of the store document inside ``config_dir``
            settings_filename: Name of the settings file inside each profile directory
            logger: Logger instance (creates one if not provided)
        """
        self.config_dir = Path(config_dir)
        self.store_filename = store_filename
        self.settings_filename = settings_filename
        self.logger = logger or logging.getLogger(__name__)

    @property
    def store_path(self) -> Path:
        return self.config_dir / self.store_filename

    def profile_settings_dir(self, profile_name: str) -> Path:
        """Directory holding a profile's derived artifacts."""
        return self.config_dir / profile_name

    def profile_settings_path(self, profile_name: str) -> Path:
        """Path of a profile's settings file."""
        return self.profile_settings_dir(profile_name) / self.settings_filename

    def store_exists(self) -> bool:
        return self.store_path.is_file()

    def load_document(self) -> Optional[Union[dict[str, Any], list[Any]]]:
        """Load the raw store document.

        A JSON list is the legacy layout, where the store file only names the
        profiles and each profile lives in its own settings file.

        Returns:
            Parsed document, or None if the store file does not exist

        Raises:
            CorruptStoreError: If the file cannot be read or is neither a JSON
                object nor a JSON list
        """
        path = self.store_path
        if not path.exists():
            self.logger.debug(f"Store file not found, starting empty: {path}")
            return None

        data = self._read_json(path, "Store file")
        if not isinstance(data, (dict, list)):
            raise CorruptStoreError(
                f"Store file {path} must contain a JSON object or a list of names, "
                f"found {type(data).__name__}"
            )

        self.logger.debug(f"Store loaded: {path}")
        return data

    def read_profile_settings(self, profile_name: str) -> Any:
        """Parse a profile's settings file.

        Raises:
            CorruptStoreError: If the file cannot be read or is not valid JSON
        """
        path = self.profile_settings_path(profile_name)
        return self._read_json(path, "Settings file")

    def profile_dir_names(self) -> list[str]:
        """Names of the non-hidden directories that hold a settings file, sorted."""
        if not self.config_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.config_dir.iterdir()
            if entry.is_dir()
            and not entry.name.startswith(".")
            and (entry / self.settings_filename).is_file()
        )

    def _read_json(self, path: Path, label: str) -> Any:
        try:
            with open(path, encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise CorruptStoreError(
                f"Failed to read {label.lower()} {path}: {e}"
            ) from e

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(f"{label} {path} is not valid JSON: {e}") from e

    def save_document(self, data: dict[str, Any]) -> Path:
        """Persist the full store document atomically.

        Args:
            data: JSON-compatible store document

        Returns:
            Path of the written store file

        Raises:
            WriteError: If the directory cannot be created or the write fails
        """
        self.ensure_config_dir()
        self.atomic_write(self.store_path, serialize_json(data))
        self.logger.debug(f"Store saved: {self.store_path}")
        return self.store_path

    def ensure_config_dir(self) -> None:
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(
                f"Failed to create config directory {self.config_dir}: {e}"
            ) from e

    def atomic_write(self, file_path: Path, content: str) -> None:
        """Perform atomic write operation.

        Args:
            file_path: Target file path
            content: Content to write

        Raises:
            WriteError: If write operation fails
        """
        temp_path: Optional[Path] = None
        try:
            # Temporary file must live on the same filesystem as the target
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=file_path.parent,
                prefix=f".{file_path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as temp_file:
                temp_path = Path(temp_file.name)
                temp_file.write(content)
                temp_file.flush()
                os.fsync(temp_file.fileno())

            os.replace(temp_path, file_path)
            temp_path = None
            self.logger.debug(f"Atomic write completed: {file_path}")

        except OSError as e:
            self.logger.error(f"Atomic write failed for {file_path}: {e}")
            raise WriteError(f"Atomic write failed for {file_path}: {e}") from e

        finally:
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    self.logger.warning(f"Could not remove temporary file {temp_path}")

    def remove_profile_dir(self, profile_name: str) -> bool:
        """Delete a profile's settings directory.

        Args:
            profile_name: Profile whose directory should be removed

        Returns:
            True if a directory was removed, False if none existed

        Raises:
            WriteError: If removal fails
        """
        profile_dir = self.profile_settings_dir(profile_name)
        if not profile_dir.exists():
            return False
        try:
            shutil.rmtree(profile_dir)
        except OSError as e:
            raise WriteError(
                f"Failed to remove settings directory {profile_dir}: {e}"
            ) from e
        self.logger.info(f"Removed settings directory: {profile_dir}")
        return True

    def move_profile_dir(self, old_name: str, new_name: str) -> bool:
        """Move a profile's settings directory to its new name.

        An orphaned directory already at the destination is removed first.

        Args:
            old_name: Current profile name
            new_name: New profile name

        Returns:
            True if a directory was moved, False if the old one did not exist

        Raises:
            WriteError: If the move fails
        """
        old_dir = self.profile_settings_dir(old_name)
        new_dir = self.profile_settings_dir(new_name)

        # A case-only rename on a case-insensitive filesystem sees one directory
        same_dir = (
            old_dir.exists() and new_dir.exists() and os.path.samefile(old_dir, new_dir)
        )
        if new_dir.exists() and not same_dir:
            self.logger.warning(f"Removing orphaned settings directory: {new_dir}")
            self.remove_profile_dir(new_name)

        if not old_dir.exists():
            return False

        try:
            os.replace(old_dir, new_dir)
        except OSError as e:
            raise WriteError(
                f"Failed to move settings directory {old_dir} -> {new_dir}: {e}"
            ) from e
        self.logger.info(f"Moved settings directory: {old_dir} -> {new_dir}")
        return True

    def delete_store_file(self) -> bool:
        """Delete the store document.

        Returns:
            True if the file was deleted, False if it did not exist

        Raises:
            WriteError: If deletion fails
        """
        try:
            self.store_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise WriteError(
                f"Failed to delete store file {self.store_path}: {e}"
            ) from e
        self.logger.info(f"Deleted store file: {self.store_path}")
        return True
