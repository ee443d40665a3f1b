"""ccuse: profile store and launcher for Claude Code.

Profiles are kept in a single JSON store; each profile is materialized into
a Claude Code ``settings.json`` before the tool is launched with it.
"""

__version__ = "0.1.0"

from .config import AppConfig
from .exceptions import (
    CcuseError,
    CorruptStoreError,
    DuplicateNameError,
    ExecutableNotFoundError,
    InvalidProfileNameError,
    NoDefaultProfileError,
    ProfileNotFoundError,
    SourceNotFoundError,
    SourceReadError,
    WriteError,
)
from .launcher import LaunchResolver
from .models import LaunchPlan, Permissions, Profile, ProfileSource
from .profiles import ProfileStore
from .synthesis import SettingsSynthesizer

__all__ = [
    "AppConfig",
    "CcuseError",
    "CorruptStoreError",
    "DuplicateNameError",
    "ExecutableNotFoundError",
    "InvalidProfileNameError",
    "LaunchPlan",
    "LaunchResolver",
    "NoDefaultProfileError",
    "Permissions",
    "Profile",
    "ProfileNotFoundError",
    "ProfileSource",
    "ProfileStore",
    "SettingsSynthesizer",
    "SourceNotFoundError",
    "SourceReadError",
    "WriteError",
    "__version__",
]
