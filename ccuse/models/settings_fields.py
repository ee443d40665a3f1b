"""Mapping from the tool's native settings casing onto Profile fields.

Shared by the cc-switch importer, the legacy store layout migration and the
CLI's ``--from-file`` option. Values of the wrong shape are rejected rather
than coerced.
"""

from typing import Any

from .schemas import Permissions


def settings_to_fields(settings: dict[str, Any]) -> dict[str, Any]:
    """Map a settings object in the tool's native casing onto Profile fields.

    Args:
        settings: Settings object (``env``, ``permissions``, ``enabledPlugins``,
            ``alwaysThinkingEnabled``, ``apiTimeoutMs``)

    Returns:
        Keyword values for ``Profile``; unset optional fields are omitted

    Raises:
        ValueError: If a known key has the wrong shape
    """
    fields: dict[str, Any] = {
        "env": _env(settings.get("env")),
        "permissions": _permissions(settings.get("permissions")),
        "enabled_plugins": _plugins(settings.get("enabledPlugins")),
    }
    if settings.get("alwaysThinkingEnabled") is not None:
        fields["always_thinking_enabled"] = settings["alwaysThinkingEnabled"]
    if settings.get("apiTimeoutMs") is not None:
        fields["api_timeout_ms"] = settings["apiTimeoutMs"]
    return fields


def _env(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"'env' must be an object, got {type(value).__name__}")
    return {str(key): "" if v is None else str(v) for key, v in value.items()}


def _permissions(value: Any) -> Permissions:
    if value is None:
        return Permissions()
    if not isinstance(value, dict):
        raise ValueError(
            f"'permissions' must be an object, got {type(value).__name__}"
        )

    enabled = value.get("enabled")
    if enabled is not None and not isinstance(enabled, bool):
        raise ValueError(
            f"'permissions.enabled' must be a boolean, got {type(enabled).__name__}"
        )

    mcp = set()
    for entry in _list_of("permissions.mcp", value.get("mcp")):
        # Entries are either plain names or {"name": ..., "enabled": ...}
        if isinstance(entry, str):
            mcp.add(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
            entry_enabled = entry.get("enabled")
            if entry_enabled is not None and not isinstance(entry_enabled, bool):
                raise ValueError(f"Unsupported MCP permission entry: {entry!r}")
            if entry_enabled is not False:
                mcp.add(entry["name"])
        else:
            raise ValueError(f"Unsupported MCP permission entry: {entry!r}")

    command = set()
    for entry in _list_of("permissions.command", value.get("command")):
        if not isinstance(entry, str):
            raise ValueError(f"Unsupported command permission entry: {entry!r}")
        command.add(entry)

    return Permissions(enabled=bool(enabled), mcp=mcp, command=command)


def _plugins(value: Any) -> set[str]:
    if value is None:
        return set()
    if isinstance(value, dict):
        plugins = set()
        for plugin, enabled in value.items():
            if not isinstance(enabled, bool):
                raise ValueError(
                    f"'enabledPlugins.{plugin}' must be a boolean, "
                    f"got {type(enabled).__name__}"
                )
            if enabled:
                plugins.add(str(plugin))
        return plugins
    if isinstance(value, list):
        for plugin in value:
            if not isinstance(plugin, str):
                raise ValueError(f"Unsupported plugin entry: {plugin!r}")
        return set(value)
    raise ValueError(
        f"'enabledPlugins' must be an object or list, got {type(value).__name__}"
    )


def _list_of(key: str, value: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list, got {type(value).__name__}")
    return value
