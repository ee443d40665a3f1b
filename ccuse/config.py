"""Runtime configuration loaded from environment variables.

Paths and tool-integration constants are collected in a single ``AppConfig``
model. Values come from a small, fixed set of environment variables; anything
unset falls back to the platform defaults.
"""

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models.schemas import LogLevel

logger = logging.getLogger(__name__)

APP_NAME = "ccuse"

# Environment variable -> AppConfig field
ENV_VARS = {
    "CCUSE_CONFIG_DIR": "config_dir",
    "CC_SWITCH_DB": "ccswitch_db_path",
    "CLAUDE_CODE_PATH": "claude_code_path",
    "CCUSE_LOG_LEVEL": "log_level",
    "CCUSE_LOG_CFG": "log_config_path",
}


def default_config_dir() -> Path:
    return Path(user_config_dir(APP_NAME, appauthor=False))


def default_ccswitch_db_path() -> Path:
    return Path.home() / ".cc-switch" / "cc-switch.db"


class AppConfig(BaseModel):
    """Application configuration."""

    model_config = ConfigDict(
        extra="forbid", use_enum_values=True, validate_default=True
    )

    config_dir: Path = Field(
        default_factory=default_config_dir,
        description="Directory holding the store file and per-profile settings",
    )
    store_filename: str = Field(default="ccuse.json")
    settings_filename: str = Field(default="settings.json")
    ccswitch_db_path: Path = Field(
        default_factory=default_ccswitch_db_path,
        description="Predecessor (cc-switch) database used by 'update'",
    )
    claude_code_path: Optional[Path] = Field(
        default=None, description="Explicit path to the tool binary"
    )
    executable_candidates: list[str] = Field(
        default_factory=lambda: ["claude", "claude-code"]
    )
    settings_flag: str = Field(default="--settings")
    bypass_flag: str = Field(default="--dangerously-skip-permissions")
    scrubbed_env_keys: list[str] = Field(
        default_factory=lambda: ["CLAUDECODE"],
        description="Inherited variables removed before the profile overlay",
    )
    log_level: LogLevel = Field(default=LogLevel.WARNING)
    log_config_path: Optional[Path] = Field(
        default=None, description="YAML logging dictConfig file"
    )

    @field_validator(
        "config_dir", "ccswitch_db_path", "claude_code_path", "log_config_path"
    )
    @classmethod
    def expand_user(cls, v: Optional[Path]) -> Optional[Path]:
        return v.expanduser() if v is not None else None

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @property
    def store_path(self) -> Path:
        return self.config_dir / self.store_filename

    @classmethod
    def from_environment(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "AppConfig":
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read (defaults to ``os.environ``)
            **overrides: Field values that win over the environment

        Returns:
            Validated configuration
        """
        environ = os.environ if environ is None else environ
        values = {}
        for env_key, field_name in ENV_VARS.items():
            env_value = environ.get(env_key)
            if env_value:
                values[field_name] = env_value
                logger.debug(f"Loaded env var: {env_key} -> {field_name}")
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
