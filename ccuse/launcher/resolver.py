"""Launch resolution: profile name to executable, arguments and environment.

The resolver never spawns anything itself. It regenerates the profile's
settings file and returns a ``LaunchPlan`` for the process-exec step.
"""

import logging
import os
import shutil
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Callable, Optional

from ..config import AppConfig
from ..exceptions import ExecutableNotFoundError, NoDefaultProfileError
from ..models.schemas import LaunchPlan, Profile
from ..profiles.store import ProfileStore
from ..synthesis.settings import SettingsSynthesizer

logger = logging.getLogger(__name__)

Which = Callable[[str], Optional[str]]


def find_executable(
    profile: Profile, config: AppConfig, which: Which = shutil.which
) -> str:
    """Locate the tool binary for a profile.

    Resolution order: the profile's ``executable_path``, then
    ``config.claude_code_path`` if it names an existing file, then the first
    configured candidate found on ``PATH``.

    Args:
        profile: Profile being launched
        config: Application configuration
        which: PATH lookup function

    Returns:
        Executable path or command name

    Raises:
        ExecutableNotFoundError: If nothing can be found
    """
    if profile.executable_path:
        return profile.executable_path

    if config.claude_code_path is not None:
        if config.claude_code_path.is_file():
            return str(config.claude_code_path)
        logger.warning(
            f"Configured executable does not exist: {config.claude_code_path}"
        )

    for candidate in config.executable_candidates:
        found = which(candidate)
        if found:
            logger.debug(f"Found executable on PATH: {found}")
            return found

    raise ExecutableNotFoundError(
        "Claude Code executable not found. Install it, set CLAUDE_CODE_PATH, "
        "or set executable_path on the profile."
    )


class LaunchResolver:
    """Builds launch plans for profiles in a store."""

    def __init__(
        self,
        store: ProfileStore,
        config: AppConfig,
        which: Which = shutil.which,
    ):
        self.store = store
        self.config = config
        self.which = which
        self.synthesizer = store.synthesizer or SettingsSynthesizer(store.persistence)

    def resolve(
        self,
        name: Optional[str] = None,
        cli_args: Sequence[str] = (),
        bypass: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ) -> LaunchPlan:
        """Resolve a profile into a launch plan.

        The settings file is always regenerated before the plan is returned.

        Args:
            name: Profile name, or None for the default profile
            cli_args: Arguments supplied at invocation, appended after the
                profile's ``extra_args``
            bypass: Request the tool's permission bypass flag
            environ: Base environment (defaults to ``os.environ``)

        Returns:
            Launch plan for the process-exec step

        Raises:
            NoDefaultProfileError: If no name is given and no default is set
            ProfileNotFoundError: If the named profile does not exist
            WriteError: If the settings file cannot be written
            ExecutableNotFoundError: If the tool binary cannot be located
        """
        if name is None:
            name = self.store.default_name
            if name is None:
                raise NoDefaultProfileError()

        profile = self.store.get(name)
        settings_path = self.synthesizer.write(profile)
        executable = find_executable(profile, self.config, self.which)

        plan = LaunchPlan(
            executable=executable,
            args=list(profile.extra_args) + list(cli_args),
            env=self.build_env(profile, environ),
            settings_path=Path(settings_path),
            profile_name=profile.name,
            bypass_permissions=bypass,
            settings_flag=self.config.settings_flag,
            bypass_flag=self.config.bypass_flag,
        )
        logger.info(f"Resolved profile '{profile.name}' -> {executable}")
        return plan

    def build_env(
        self, profile: Profile, environ: Optional[Mapping[str, str]] = None
    ) -> dict[str, str]:
        """Inherited environment minus scrubbed keys, overlaid with the profile env."""
        base = os.environ if environ is None else environ
        env = {
            key: value
            for key, value in base.items()
            if key not in self.config.scrubbed_env_keys
        }
        env.update(profile.env)
        return env
