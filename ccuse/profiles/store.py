"""Profile store: the single source of truth for all profiles.

Provides profile management on top of one JSON document:
- Loading with schema migration and validation
- Creation, update, rename and deletion with names unique ignoring case
- Default profile tracking (at most one default at any time)
- Regeneration of derived settings files after mutations

Every mutating call validates the complete new state and persists it with a
single atomic write before the in-memory state is replaced, so a failed write
leaves both the file and the handle unchanged.

Concurrent invocations against the same store are not coordinated: each write
is internally consistent, but the last writer wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Optional

from pydantic import ValidationError

from ..config import AppConfig
from ..exceptions import (
    CorruptStoreError,
    DuplicateNameError,
    InvalidProfileNameError,
    ProfileNotFoundError,
)
from ..migrations.legacy_layout_migration import LegacyLayoutMigration
from ..migrations.store_version_migration import StoreMigrationError, migrate_document
from ..models.schemas import (
    CURRENT_STORE_VERSION,
    Profile,
    ProfileStoreDocument,
    utc_now,
    validate_profile_name,
)
from ..storage.persistence import StorePersistence
from ..synthesis.settings import SettingsSynthesizer

# Fields that cannot be changed through update()
_PROTECTED_FIELDS = frozenset({"name", "is_default", "created_at"})


class ProfileStore:
    """Loaded, mutable handle on the profile store document."""

    def __init__(
        self,
        persistence: StorePersistence,
        synthesizer: Optional[SettingsSynthesizer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize profile store.

        Args:
            persistence: File layout and atomic IO
            synthesizer: Regenerates settings files after mutations when given
            logger: Logger instance (creates one if None)
        """
        self._persistence = persistence
        self._synthesizer = synthesizer
        self.logger = logger or logging.getLogger(__name__)

        self._profiles: list[Profile] = []
        self._default: Optional[str] = None
        self._version = CURRENT_STORE_VERSION
        self._loaded = False
        self.warnings: list[str] = []

    @classmethod
    def open(
        cls, config: AppConfig, logger: Optional[logging.Logger] = None
    ) -> ProfileStore:
        """Create a store wired with persistence and synthesis, and load it."""
        persistence = StorePersistence(
            config.config_dir,
            store_filename=config.store_filename,
            settings_filename=config.settings_filename,
        )
        store = cls(persistence, SettingsSynthesizer(persistence), logger=logger)
        return store.load()

    @property
    def persistence(self) -> StorePersistence:
        return self._persistence

    @property
    def synthesizer(self) -> Optional[SettingsSynthesizer]:
        return self._synthesizer

    @property
    def default_name(self) -> Optional[str]:
        self._ensure_loaded()
        return self._default

    @property
    def version(self) -> int:
        """Schema version of the document as it was read from disk."""
        self._ensure_loaded()
        return self._version

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> ProfileStore:
        """Read and validate the store document.

        A missing store file yields an empty store. A legacy store file (a
        list of names beside per-profile records) is converted and written
        back immediately, regenerating every settings file.

        Returns:
            The store itself

        Raises:
            CorruptStoreError: If the file exists but does not parse or validate
            WriteError: If a converted legacy store cannot be written back
        """
        raw = self._persistence.load_document()
        self.warnings = []

        if raw is None:
            self._profiles = []
            self._default = None
            self._version = CURRENT_STORE_VERSION
            self._loaded = True
            return self

        legacy = LegacyLayoutMigration(self._persistence)
        legacy_layout = legacy.should_migrate(raw)
        try:
            if legacy_layout:
                self._version = legacy.from_version
                migrated = legacy.migrate(raw)
                self.warnings = legacy.validate(raw)
                raw = migrated
                for warning in self.warnings:
                    self.logger.warning(warning)
            else:
                self._version = raw.get("version", 0)
                raw, self.warnings = migrate_document(raw)
        except StoreMigrationError as e:
            raise CorruptStoreError(
                f"Store file {self._persistence.store_path} cannot be upgraded: {e}"
            ) from e

        try:
            document = ProfileStoreDocument.model_validate(raw)
        except ValidationError as e:
            raise CorruptStoreError(
                f"Store file {self._persistence.store_path} failed validation: {e}"
            ) from e

        self._profiles = list(document.profiles)
        self._default = document.default
        self._loaded = True
        self.logger.debug(
            f"Loaded {len(self._profiles)} profiles (default: {self._default})"
        )

        if legacy_layout:
            self._commit(self._profiles, self._default)
            for profile in self._profiles:
                self._regenerate(profile)
            self.logger.info(
                f"Converted legacy store layout ({len(self._profiles)} profiles)"
            )
        return self

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list(self) -> list[Profile]:
        """Return all profiles in insertion order, annotated with the default flag."""
        self._ensure_loaded()
        return [self._annotated(profile) for profile in self._profiles]

    def get(self, name: str) -> Profile:
        """Return one profile.

        Raises:
            ProfileNotFoundError: If no profile has this name
        """
        self._ensure_loaded()
        return self._annotated(self._find(name))

    def contains(self, name: str) -> bool:
        self._ensure_loaded()
        return any(profile.name == name for profile in self._profiles)

    def conflicting_name(self, name: str) -> Optional[str]:
        """Return the stored name equal to ``name`` ignoring case, if any."""
        self._ensure_loaded()
        folded = name.casefold()
        for profile in self._profiles:
            if profile.name.casefold() == folded:
                return profile.name
        return None

    def names(self) -> list[str]:
        self._ensure_loaded()
        return [profile.name for profile in self._profiles]

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._profiles)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, profile: Profile) -> Profile:
        """Add a new profile.

        The first profile added to an empty store becomes the default.

        Args:
            profile: Profile to add

        Returns:
            The stored profile, annotated with the default flag

        Raises:
            DuplicateNameError: If the name is already taken, ignoring case
            InvalidProfileNameError: If the name collides with the store file
            WriteError: If persisting or writing the settings file fails
        """
        return self.add_all([profile])[0]

    def add_all(self, profiles: Iterable[Profile]) -> list[Profile]:
        """Add several profiles with a single persist.

        Args:
            profiles: Profiles to add, in order

        Returns:
            The stored profiles, annotated with the default flag

        Raises:
            DuplicateNameError: If any name is already taken or repeated, ignoring case
            InvalidProfileNameError: If a name collides with the store file
            WriteError: If persisting or writing a settings file fails
        """
        self._ensure_loaded()
        incoming = [
            profile.model_copy(deep=True, update={"is_default": False})
            for profile in profiles
        ]
        if not incoming:
            return []

        # Names are compared case-insensitively: each one is also a directory
        taken = {profile.name.casefold(): profile.name for profile in self._profiles}
        for profile in incoming:
            self.check_name(profile.name)
            folded = profile.name.casefold()
            if folded in taken:
                raise DuplicateNameError(profile.name, taken[folded])
            taken[folded] = profile.name

        default = self._default
        if not self._profiles and default is None:
            default = incoming[0].name

        self._commit(self._profiles + incoming, default)
        for profile in incoming:
            self.logger.info(f"Created profile: {profile.name}")
            self._regenerate(profile)

        return [self._annotated(profile) for profile in incoming]

    def update(self, name: str, /, **changes: Any) -> Profile:
        """Replace fields of an existing profile.

        Args:
            name: Profile to update
            **changes: Field values to set (``name`` changes go through rename)

        Returns:
            The updated profile

        Raises:
            ProfileNotFoundError: If the profile does not exist
            ValueError: If a protected field is passed or values fail validation
            WriteError: If persisting or writing the settings file fails
        """
        self._ensure_loaded()
        protected = _PROTECTED_FIELDS.intersection(changes)
        if protected:
            raise ValueError(
                f"Cannot update {', '.join(sorted(protected))} through update()"
            )

        current = self._find(name)
        data = current.model_dump()
        data.update(changes)
        data["updated_at"] = utc_now()
        updated = Profile.model_validate(data)

        profiles = [updated if p.name == name else p for p in self._profiles]
        self._commit(profiles, self._default)
        self.logger.info(f"Updated profile: {name} ({', '.join(sorted(changes))})")
        self._regenerate(updated)
        return self._annotated(updated)

    def rename(self, old_name: str, new_name: str) -> Profile:
        """Rename a profile, keeping its default flag and all other fields.

        The settings directory follows the profile: it is moved to the new
        name and the settings file is regenerated there.

        Args:
            old_name: Current name
            new_name: New name

        Returns:
            The renamed profile

        Raises:
            ProfileNotFoundError: If ``old_name`` does not exist
            DuplicateNameError: If another profile has ``new_name``, ignoring case
            InvalidProfileNameError: If ``new_name`` is not a valid name
            WriteError: If persisting or moving the settings directory fails
        """
        self._ensure_loaded()
        current = self._find(old_name)
        if new_name == old_name:
            return self._annotated(current)

        self.check_name(new_name)
        existing = self.conflicting_name(new_name)
        if existing is not None and existing != old_name:
            raise DuplicateNameError(new_name, existing)

        renamed = current.model_copy(
            update={"name": new_name, "updated_at": utc_now()}
        )
        profiles = [renamed if p.name == old_name else p for p in self._profiles]
        default = new_name if self._default == old_name else self._default

        self._commit(profiles, default)
        self.logger.info(f"Renamed profile: {old_name} -> {new_name}")

        self._persistence.move_profile_dir(old_name, new_name)
        self._regenerate(renamed)
        return self._annotated(renamed)

    def remove(self, name: str) -> Profile:
        """Remove a profile and its settings directory.

        Removing the default profile leaves the store without a default.

        Args:
            name: Profile to remove

        Returns:
            The removed profile

        Raises:
            ProfileNotFoundError: If the profile does not exist
            WriteError: If persisting or deleting the settings directory fails
        """
        self._ensure_loaded()
        removed = self._annotated(self._find(name))
        profiles = [p for p in self._profiles if p.name != name]
        default = None if self._default == name else self._default

        self._commit(profiles, default)
        if removed.is_default:
            self.logger.warning(f"Removed default profile '{name}'; no default is set")
        self.logger.info(f"Removed profile: {name}")

        self._discard_settings(name)
        return removed

    def remove_all(self) -> list[str]:
        """Remove every profile, their settings directories and the store file.

        This cannot be undone; confirmation belongs to the caller.

        Returns:
            Names of the removed profiles

        Raises:
            WriteError: If a directory or the store file cannot be deleted
        """
        self._ensure_loaded()
        names = self.names()
        for name in names:
            self._discard_settings(name)
        self._persistence.delete_store_file()

        self._profiles = []
        self._default = None
        self.logger.info(f"Removed all profiles ({len(names)}) and the store file")
        return names

    def set_default(self, name: str) -> Profile:
        """Make a profile the default, clearing the previous default.

        Raises:
            ProfileNotFoundError: If the profile does not exist
            WriteError: If persisting fails
        """
        self._ensure_loaded()
        profile = self._find(name)
        previous = self._default
        self._commit(self._profiles, name)
        self.logger.info(f"Default profile changed from '{previous}' to '{name}'")
        return self._annotated(profile)

    def save(self) -> None:
        """Persist the current state, upgrading the document version if needed."""
        self._ensure_loaded()
        self._commit(self._profiles, self._default)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _find(self, name: str) -> Profile:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        raise ProfileNotFoundError(name)

    def _annotated(self, profile: Profile) -> Profile:
        return profile.model_copy(
            deep=True, update={"is_default": profile.name == self._default}
        )

    def check_name(self, name: str) -> None:
        """Raise InvalidProfileNameError if a name cannot be stored."""
        try:
            validate_profile_name(name)
        except ValueError as e:
            raise InvalidProfileNameError(str(e)) from e
        if name == self._persistence.store_filename:
            raise InvalidProfileNameError(
                f"Profile name '{name}' collides with the store file"
            )

    def _commit(self, profiles: list[Profile], default: Optional[str]) -> None:
        document = ProfileStoreDocument(
            version=CURRENT_STORE_VERSION, default=default, profiles=profiles
        )
        self._persistence.save_document(document.to_json_dict())
        self._profiles = list(document.profiles)
        self._default = document.default
        self._version = CURRENT_STORE_VERSION

    def _regenerate(self, profile: Profile) -> None:
        if self._synthesizer is not None:
            self._synthesizer.write(profile)

    def _discard_settings(self, name: str) -> None:
        if self._synthesizer is not None:
            self._synthesizer.remove(name)
        else:
            self._persistence.remove_profile_dir(name)
