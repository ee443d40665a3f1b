"""Store document migrations.

Migrations are applied when the store is loaded so that older documents keep
working. A version 0 document is written back on the next persist; the legacy
per-profile layout is written back as soon as it is converted.
"""

from .legacy_layout_migration import LegacyLayoutMigration
from .store_version_migration import (
    StoreMigrationError,
    StoreVersionMigration,
    migrate_document,
)

__all__ = [
    "LegacyLayoutMigration",
    "StoreMigrationError",
    "StoreVersionMigration",
    "migrate_document",
]
