"""Launch resolution for profiles."""

from .resolver import LaunchResolver, find_executable

__all__ = ["LaunchResolver", "find_executable"]
