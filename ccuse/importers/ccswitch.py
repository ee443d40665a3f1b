"""Candidate source for the cc-switch SQLite database.

cc-switch keeps one row per provider in the ``providers`` table. Only rows
with ``app_type = 'claude'`` describe profiles for this tool; everything else
is reported as unsupported.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from ..config import default_ccswitch_db_path
from ..exceptions import SourceNotFoundError, SourceReadError
from .base import CandidateProfile, CandidateSource, ScanResult, SkippedEntry

logger = logging.getLogger(__name__)

SUPPORTED_APP_TYPE = "claude"

PROVIDERS_QUERY = text(
    "SELECT id, name, app_type, settings_config, created_at FROM providers"
)


class CcSwitchSource(CandidateSource):
    """Reads provider records from a cc-switch database."""

    name = "cc-switch"

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else default_ccswitch_db_path()

    def exists(self) -> bool:
        return self.db_path.is_file()

    def scan(self) -> ScanResult:
        """Read all provider rows.

        Returns:
            Candidates for Claude providers, with every other row reported

        Raises:
            SourceNotFoundError: If the database file does not exist
            SourceReadError: If the database cannot be opened or queried
        """
        if not self.exists():
            raise SourceNotFoundError(self.db_path)

        rows = self._fetch_rows()
        result = ScanResult()

        for row in rows:
            identifier = str(row.get("id") or row.get("name") or "?")
            try:
                candidate = self._parse_row(row)
            except ValueError as e:
                logger.warning(f"Skipping cc-switch provider {identifier}: {e}")
                result.skipped.append(SkippedEntry(identifier, str(e)))
                continue
            result.candidates.append(candidate)

        logger.info(
            f"Scanned {self.db_path}: {len(result.candidates)} candidates, "
            f"{len(result.skipped)} skipped"
        )
        return result

    def _fetch_rows(self) -> list[dict[str, Any]]:
        engine = create_engine(f"sqlite:///file:{self.db_path}?mode=ro&uri=true")
        try:
            with engine.connect() as connection:
                result = connection.execute(PROVIDERS_QUERY)
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            raise SourceReadError(
                f"Failed to read cc-switch database {self.db_path}: {e}"
            ) from e
        finally:
            engine.dispose()

    def _parse_row(self, row: dict[str, Any]) -> CandidateProfile:
        app_type = row.get("app_type")
        if app_type != SUPPORTED_APP_TYPE:
            raise ValueError(f"unsupported app_type '{app_type}'")

        name = row.get("name")
        if not name or not str(name).strip():
            raise ValueError("provider has no name")

        raw_settings = row.get("settings_config")
        try:
            settings = json.loads(raw_settings) if raw_settings else {}
        except (TypeError, json.JSONDecodeError) as e:
            raise ValueError(f"settings_config is not valid JSON: {e}") from e
        if not isinstance(settings, dict):
            raise ValueError("settings_config is not a JSON object")

        return CandidateProfile(
            source_id=str(row.get("id")),
            original_name=str(name),
            settings=settings,
            created_at=_from_millis(row.get("created_at")),
        )


def _from_millis(value: Any) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
