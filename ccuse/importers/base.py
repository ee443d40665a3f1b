"""Candidate sources for importing profiles from predecessor tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..models.schemas import Profile, ProfileSource
from ..models.settings_fields import settings_to_fields


@dataclass
class SkippedEntry:
    """A source record that was not turned into a profile."""

    identifier: str
    reason: str


@dataclass
class CandidateProfile:
    """One predecessor record, parsed but not yet validated as a Profile.

    ``settings`` holds the record's settings object in the tool's native
    casing (``env``, ``permissions``, ``enabledPlugins``, ...).
    """

    source_id: str
    original_name: str
    settings: dict[str, Any]
    created_at: Optional[datetime] = None
    source: ProfileSource = ProfileSource.CC_SWITCH

    @property
    def name(self) -> str:
        return self.original_name.strip().replace(" ", "_")

    def to_profile(self) -> Profile:
        """Derive a Profile from this candidate.

        Raises:
            ValueError: If the settings cannot be mapped or fail validation
        """
        data: dict[str, Any] = {
            "name": self.name,
            "display_name": self.original_name,
            "source": self.source,
            **settings_to_fields(self.settings),
        }
        if self.created_at is not None:
            data["created_at"] = self.created_at
            data["updated_at"] = self.created_at
        return Profile.model_validate(data)


@dataclass
class ScanResult:
    """Candidates found by a source plus the records it skipped."""

    candidates: list[CandidateProfile] = field(default_factory=list)
    skipped: list[SkippedEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[CandidateProfile]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)


class CandidateSource(ABC):
    """A predecessor database that can be scanned for profiles."""

    name: str

    @abstractmethod
    def scan(self) -> ScanResult:
        """Read the source and return its candidates.

        Unsupported or unparsable records are reported in
        ``ScanResult.skipped`` rather than raised.
        """
