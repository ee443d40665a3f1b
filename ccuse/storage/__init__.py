"""Store persistence and file layout."""

from .persistence import StorePersistence, serialize_json

__all__ = ["StorePersistence", "serialize_json"]
