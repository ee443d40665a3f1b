"""Command-line front-end for ccuse.

Thin argparse wrapper over the profile store, the cc-switch importer and the
launch resolver. Every ``CcuseError`` is rendered as ``Error: <message>`` on
stderr with exit status 1; ``use`` exits with the launched tool's status.
"""

import argparse
import json
import logging
import signal
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional

from . import __version__
from .config import AppConfig
from .exceptions import CcuseError, SourceNotFoundError, SourceReadError
from .importers import CcSwitchSource, import_from, settings_to_fields
from .launcher import LaunchResolver
from .models.schemas import LaunchPlan, Permissions, Profile, ProfileSource
from .profiles import ProfileStore
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

PASSTHROUGH_SEPARATOR = "--"


# =============================================================================
# Argument types
# =============================================================================


def _convert_bool(value: str) -> bool:
    """Convert string to boolean."""
    value = value.lower().strip()
    if value in ("true", "yes", "on", "1", "y"):
        return True
    elif value in ("false", "no", "off", "0", "n"):
        return False
    raise argparse.ArgumentTypeError(f"Cannot convert '{value}' to boolean")


def _env_pair(value: str) -> tuple[str, str]:
    key, sep, env_value = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{value}'")
    return key, env_value


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {number}")
    return number


# =============================================================================
# Parser
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="ccuse",
        description="Manage Claude Code profiles and launch Claude Code with one",
        epilog="Arguments after '--' are passed to Claude Code by 'use'.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Configuration directory (default: $CCUSE_CONFIG_DIR or platform default)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    list_parser = subparsers.add_parser("list", help="List profiles")
    list_parser.set_defaults(handler=cmd_list)

    add_parser = subparsers.add_parser("add", help="Create a profile")
    add_parser.add_argument("name", help="Profile name")
    add_parser.add_argument(
        "--env",
        type=_env_pair,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Environment variable for Claude Code (repeatable)",
    )
    add_parser.add_argument(
        "--arg",
        dest="extra_args",
        action="append",
        default=[],
        metavar="ARG",
        help="Argument appended on every launch (repeatable)",
    )
    add_parser.add_argument(
        "--executable", default=None, help="Claude Code binary for this profile"
    )
    add_parser.add_argument(
        "--plugin",
        dest="plugins",
        action="append",
        default=[],
        help="Enabled plugin (repeatable)",
    )
    add_parser.add_argument(
        "--mcp", action="append", default=[], help="Allowed MCP server (repeatable)"
    )
    add_parser.add_argument(
        "--command",
        dest="commands",
        action="append",
        default=[],
        help="Allowed command (repeatable)",
    )
    add_parser.add_argument(
        "--permissions-enabled",
        action="store_true",
        help="Enforce the MCP and command allow-lists",
    )
    add_parser.add_argument(
        "--thinking",
        type=_convert_bool,
        default=None,
        metavar="BOOL",
        help="Set alwaysThinkingEnabled",
    )
    add_parser.add_argument(
        "--api-timeout-ms", type=_positive_int, default=None, help="Set apiTimeoutMs"
    )
    add_parser.add_argument("--category", default=None, help="Grouping label")
    add_parser.add_argument(
        "--from-file",
        type=Path,
        default=None,
        metavar="SETTINGS_JSON",
        help="Start from an existing Claude Code settings file",
    )
    add_parser.set_defaults(handler=cmd_add)

    update_parser = subparsers.add_parser(
        "update", help="Import profiles from cc-switch (existing names are kept)"
    )
    update_parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="cc-switch database (default: $CC_SWITCH_DB or ~/.cc-switch/cc-switch.db)",
    )
    update_parser.set_defaults(handler=cmd_update)

    remove_parser = subparsers.add_parser("remove", help="Remove a profile")
    remove_parser.add_argument("name", nargs="?", help="Profile name")
    remove_parser.add_argument(
        "--all",
        dest="remove_all",
        action="store_true",
        help="Remove every profile and the store file",
    )
    remove_parser.add_argument(
        "-y", "--yes", action="store_true", help="Do not ask for confirmation"
    )
    remove_parser.set_defaults(handler=cmd_remove)

    rename_parser = subparsers.add_parser("rename", help="Rename a profile")
    rename_parser.add_argument("old_name")
    rename_parser.add_argument("new_name")
    rename_parser.set_defaults(handler=cmd_rename)

    default_parser = subparsers.add_parser("default", help="Set the default profile")
    default_parser.add_argument("name")
    default_parser.set_defaults(handler=cmd_default)

    use_parser = subparsers.add_parser("use", help="Launch Claude Code with a profile")
    use_parser.add_argument(
        "name", nargs="?", default=None, help="Profile name (default profile if omitted)"
    )
    use_parser.add_argument(
        "-b",
        "--bypass",
        action="store_true",
        help="Pass --dangerously-skip-permissions to Claude Code",
    )
    use_parser.set_defaults(handler=cmd_use)

    config_dir_parser = subparsers.add_parser(
        "config-dir", help="Print the configuration directory"
    )
    config_dir_parser.set_defaults(handler=cmd_config_dir)

    return parser


def split_passthrough(argv: list[str]) -> tuple[list[str], list[str]]:
    """Split argv at the first '--' into ccuse arguments and tool arguments."""
    if PASSTHROUGH_SEPARATOR in argv:
        index = argv.index(PASSTHROUGH_SEPARATOR)
        return argv[:index], argv[index + 1 :]
    return argv, []


# =============================================================================
# Commands
# =============================================================================


def cmd_list(args: argparse.Namespace, config: AppConfig) -> int:
    store = ProfileStore.open(config)
    profiles = store.list()
    if not profiles:
        print("No profiles. Create one with 'ccuse add NAME' or 'ccuse update'.")
        return 0

    width = max(len(profile.name) for profile in profiles)
    for profile in profiles:
        marker = "*" if profile.is_default else " "
        details = []
        if profile.label != profile.name:
            details.append(profile.label)
        if profile.category:
            details.append(f"[{profile.category}]")
        if profile.source:
            details.append(f"({profile.source})")
        line = f"{marker} {profile.name.ljust(width)}  {' '.join(details)}"
        print(line.rstrip())
    return 0


def cmd_add(args: argparse.Namespace, config: AppConfig) -> int:
    store = ProfileStore.open(config)
    store.check_name(args.name)
    profile = store.add(profile_from_args(args))
    suffix = " (default)" if profile.is_default else ""
    print(f"Created profile '{profile.name}'{suffix}")
    return 0


def cmd_update(args: argparse.Namespace, config: AppConfig) -> int:
    store = ProfileStore.open(config)
    source = CcSwitchSource(args.db or config.ccswitch_db_path)
    report = import_from(source, store)

    if report.added:
        print(f"Imported: {', '.join(report.added)}")
    if report.skipped:
        print(f"Skipped (already exists): {', '.join(report.skipped)}")
    for entry in report.rejected:
        print(f"Rejected {entry.identifier}: {entry.reason}")
    if not (report.added or report.skipped or report.rejected):
        print("Nothing to import.")
    return 0


def cmd_remove(args: argparse.Namespace, config: AppConfig) -> int:
    store = ProfileStore.open(config)

    if args.remove_all:
        if not args.yes and not _confirm(
            f"Remove all {len(store)} profiles and {store.persistence.store_path}?"
        ):
            print("Aborted.")
            return 1
        names = store.remove_all()
        print(f"Removed {len(names)} profiles and the store file")
        return 0

    if args.name is None:
        raise CcuseError("Pass a profile name or --all")

    removed = store.remove(args.name)
    print(f"Removed profile '{removed.name}'")
    if removed.is_default:
        print("No default profile is set; use 'ccuse default NAME' to choose one.")
    return 0


def cmd_rename(args: argparse.Namespace, config: AppConfig) -> int:
    store = ProfileStore.open(config)
    store.rename(args.old_name, args.new_name)
    print(f"Renamed profile '{args.old_name}' to '{args.new_name}'")
    return 0


def cmd_default(args: argparse.Namespace, config: AppConfig) -> int:
    store = ProfileStore.open(config)
    store.set_default(args.name)
    print(f"Default profile: {args.name}")
    return 0


def cmd_use(args: argparse.Namespace, config: AppConfig) -> int:
    store = ProfileStore.open(config)
    plan = LaunchResolver(store, config).resolve(
        args.name, cli_args=args.passthrough, bypass=args.bypass
    )
    return launch(plan)


def cmd_config_dir(args: argparse.Namespace, config: AppConfig) -> int:
    print(config.config_dir)
    return 0


# =============================================================================
# Helpers
# =============================================================================


def launch(plan: LaunchPlan) -> int:
    """Run the tool in the foreground and return its exit status.

    Ctrl-C belongs to the tool while it runs: the terminal delivers SIGINT to
    the whole process group, so ccuse swallows it and waits for the tool to
    exit. The handler is a Python function, not SIG_IGN, so the tool still
    starts with default SIGINT handling.

    Args:
        plan: Resolved launch plan

    Returns:
        The tool's exit status; death by signal N is reported as 128 + N

    Raises:
        CcuseError: If the executable cannot be started
    """

    def signal_handler(signum, frame):
        logger.debug(f"Signal {signum} left to the launched tool")

    logger.debug(f"Launching: {plan.argv}")
    previous = signal.signal(signal.SIGINT, signal_handler)
    try:
        completed = subprocess.run(plan.argv, env=plan.env)
    except OSError as e:
        raise CcuseError(f"Failed to launch {plan.executable}: {e}") from e
    finally:
        if previous is None:
            previous = signal.SIG_DFL
        signal.signal(signal.SIGINT, previous)

    if completed.returncode < 0:
        return 128 - completed.returncode
    return completed.returncode


def profile_from_args(args: argparse.Namespace) -> Profile:
    """Build a new profile from ``add`` arguments.

    Flags are layered on top of ``--from-file`` settings when given.
    """
    fields: dict[str, Any] = {}
    if args.from_file is not None:
        fields = settings_to_fields(read_settings_file(args.from_file))

    base_permissions = fields.get("permissions") or Permissions()
    env = dict(fields.get("env", {}))
    env.update(dict(args.env))

    thinking = args.thinking
    if thinking is None:
        thinking = fields.get("always_thinking_enabled")
    timeout = args.api_timeout_ms
    if timeout is None:
        timeout = fields.get("api_timeout_ms")

    return Profile(
        name=args.name,
        executable_path=args.executable,
        extra_args=list(args.extra_args),
        env=env,
        permissions=Permissions(
            enabled=args.permissions_enabled or base_permissions.enabled,
            mcp=base_permissions.mcp | set(args.mcp),
            command=base_permissions.command | set(args.commands),
        ),
        enabled_plugins=set(fields.get("enabled_plugins", set())) | set(args.plugins),
        always_thinking_enabled=thinking,
        api_timeout_ms=timeout,
        category=args.category,
        source=ProfileSource.MANUAL,
    )


def read_settings_file(path: Path) -> dict[str, Any]:
    """Read a Claude Code settings file.

    Raises:
        SourceNotFoundError: If the file does not exist
        SourceReadError: If it cannot be read or is not a JSON object
    """
    if not path.is_file():
        raise SourceNotFoundError(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SourceReadError(f"Failed to read settings file {path}: {e}") from e
    if not isinstance(data, dict):
        raise SourceReadError(f"Settings file {path} must contain a JSON object")
    return data


def _confirm(question: str) -> bool:
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the ccuse command.

    Args:
        argv: Command-line arguments (defaults to ``sys.argv[1:]``)

    Returns:
        Process exit status
    """
    parser = build_parser()
    own_args, passthrough = split_passthrough(
        list(sys.argv[1:] if argv is None else argv)
    )
    args = parser.parse_args(own_args)
    if passthrough and args.command != "use":
        parser.error("arguments after '--' are only accepted by 'use'")
    args.passthrough = passthrough

    try:
        config = AppConfig.from_environment(config_dir=args.config_dir)
        setup_logging(config.log_level, config.log_config_path, verbose=args.verbose)
        return args.handler(args, config)
    except CcuseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        logger.debug("Invalid input", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
