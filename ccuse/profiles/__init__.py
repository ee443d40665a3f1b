"""Profile store.

Provides:
- ProfileStore: CRUD over the persisted profile document with default tracking
"""

from .store import ProfileStore

__all__ = ["ProfileStore"]
