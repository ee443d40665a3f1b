"""Error taxonomy for the profile store and launch pipeline.

Every failure raised by the store, synthesizer, importer or resolver derives
from ``CcuseError`` so the CLI boundary can render it as a single message.
"""

from typing import Optional


class CcuseError(Exception):
    """Base class for all ccuse errors."""

    pass


class ProfileNotFoundError(CcuseError):
    """Requested profile does not exist in the store."""

    def __init__(self, name: str):
        super().__init__(f"Profile not found: {name}")
        self.name = name


class DuplicateNameError(CcuseError):
    """A profile with the same name already exists."""

    def __init__(self, name: str, existing: Optional[str] = None):
        if existing is None or existing == name:
            message = f"Profile already exists: {name}"
        else:
            message = (
                f"Profile name '{name}' differs only in case "
                f"from existing profile '{existing}'"
            )
        super().__init__(message)
        self.name = name
        self.existing = existing or name


class InvalidProfileNameError(CcuseError):
    """Profile name cannot be used as a directory segment."""

    pass


class CorruptStoreError(CcuseError):
    """Store file exists but does not parse or validate."""

    pass


class NoDefaultProfileError(CcuseError):
    """No profile name given and no default profile is set."""

    def __init__(self) -> None:
        super().__init__(
            "No default profile set. Pass a profile name or run 'ccuse default NAME'."
        )


class WriteError(CcuseError):
    """Filesystem failure while persisting the store or a settings file."""

    pass


class SourceNotFoundError(CcuseError):
    """Predecessor database for import does not exist."""

    def __init__(self, path):
        super().__init__(f"Import source not found: {path}")
        self.path = path


class SourceReadError(CcuseError):
    """Predecessor database exists but cannot be read."""

    pass


class ExecutableNotFoundError(CcuseError):
    """The external tool binary could not be located."""

    pass
