"""Pydantic schemas for profiles and the profile store document.

This module defines the data model shared by the store, the settings
synthesizer, the importer and the launch resolver:
- Profile and its permission allow-lists
- The persisted store document (schema version, default name, profiles)
- The launch plan handed to the process-exec step
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

CURRENT_STORE_VERSION = 1

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_profile_name(name: str) -> str:
    """Check that a profile name is usable as a single directory segment.

    Args:
        name: Candidate profile name

    Returns:
        The unchanged name

    Raises:
        ValueError: If the name is empty, hidden, or contains path separators
    """
    if not name or not name.strip():
        raise ValueError("Profile name cannot be empty")
    if name in (".", ".."):
        raise ValueError(f"Profile name '{name}' is reserved")
    if name.startswith("."):
        raise ValueError(f"Profile name '{name}' cannot start with '.'")
    if "/" in name or "\\" in name:
        raise ValueError(f"Profile name '{name}' cannot contain path separators")
    if _CONTROL_CHARS.search(name):
        raise ValueError(f"Profile name {name!r} contains control characters")
    return name


# =============================================================================
# Base Configuration Classes
# =============================================================================


class ProfileSource(str, Enum):
    """Where a profile came from."""

    MANUAL = "manual"
    CC_SWITCH = "cc-switch"


class LogLevel(str, Enum):
    """Logging level enumeration."""

    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


class BaseConfig(BaseModel):
    """Base model with strict field handling."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        use_enum_values=True,
    )


# =============================================================================
# Profile
# =============================================================================


class Permissions(BaseConfig):
    """Allow-lists consumed by the external tool."""

    enabled: bool = Field(
        default=False, description="Whether the tool should enforce the allow-lists"
    )
    mcp: set[str] = Field(default_factory=set, description="Allowed MCP servers")
    command: set[str] = Field(default_factory=set, description="Allowed commands")

    @field_serializer("mcp", "command")
    def serialize_allow_list(self, value: set[str]) -> list[str]:
        return sorted(value)


class Profile(BaseConfig):
    """Named bundle of launch configuration for the external tool."""

    name: str = Field(description="Unique profile name, also a directory segment")
    display_name: Optional[str] = Field(
        default=None, description="Human-readable label"
    )
    executable_path: Optional[str] = Field(
        default=None, description="Override of the default tool binary"
    )
    extra_args: list[str] = Field(
        default_factory=list, description="Arguments appended on every launch"
    )
    env: dict[str, str] = Field(
        default_factory=dict, description="Environment injected into the tool"
    )
    permissions: Permissions = Field(default_factory=Permissions)
    enabled_plugins: set[str] = Field(default_factory=set)
    always_thinking_enabled: Optional[bool] = Field(default=None)
    api_timeout_ms: Optional[int] = Field(default=None, ge=1)
    category: Optional[str] = Field(default=None)
    source: Optional[ProfileSource] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    is_default: bool = Field(
        default=False,
        exclude=True,
        description="Derived from the store; never persisted per profile",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return validate_profile_name(v)

    @field_serializer("enabled_plugins")
    def serialize_plugins(self, value: set[str]) -> list[str]:
        return sorted(value)

    @property
    def label(self) -> str:
        return self.display_name or self.name


# =============================================================================
# Store Document
# =============================================================================


class ProfileStoreDocument(BaseConfig):
    """The persisted store: schema version, default selection and profiles."""

    version: int = Field(default=CURRENT_STORE_VERSION, ge=0)
    default: Optional[str] = Field(default=None)
    profiles: list[Profile] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def reject_profile_default_flags(cls, data: Any) -> Any:
        """Only version 0 documents may flag the default per profile."""
        if isinstance(data, dict) and isinstance(data.get("profiles"), list):
            for entry in data["profiles"]:
                if isinstance(entry, dict) and "is_default" in entry:
                    raise ValueError(
                        f"Profile '{entry.get('name')}' has 'is_default'; "
                        "the default belongs in the document's 'default' key"
                    )
        return data

    @model_validator(mode="after")
    def check_consistency(self) -> "ProfileStoreDocument":
        seen: set[str] = set()
        for profile in self.profiles:
            if profile.name in seen:
                raise ValueError(f"Duplicate profile name '{profile.name}'")
            seen.add(profile.name)
        if self.default is not None and self.default not in seen:
            raise ValueError(f"Default profile '{self.default}' does not exist")
        return self

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================================
# Launch
# =============================================================================


@dataclass
class LaunchPlan:
    """Everything the process-exec step needs to start the tool."""

    executable: str
    args: list[str]
    env: dict[str, str]
    settings_path: Path
    profile_name: str
    bypass_permissions: bool = False
    settings_flag: str = "--settings"
    bypass_flag: str = "--dangerously-skip-permissions"

    @property
    def argv(self) -> list[str]:
        argv = [self.executable]
        if self.settings_flag:
            argv += [self.settings_flag, str(self.settings_path)]
        if self.bypass_permissions:
            argv.append(self.bypass_flag)
        return argv + list(self.args)
