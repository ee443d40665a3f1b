"""Importers for profiles from predecessor tools.

Provides:
- CandidateSource: interface for a scannable predecessor database
- CcSwitchSource: reader for the cc-switch SQLite database
- merge / import_from: additive merge into the profile store
"""

from .base import (
    CandidateProfile,
    CandidateSource,
    ScanResult,
    SkippedEntry,
    settings_to_fields,
)
from .ccswitch import CcSwitchSource
from .merger import MergeReport, import_from, merge

__all__ = [
    "CandidateProfile",
    "CandidateSource",
    "CcSwitchSource",
    "MergeReport",
    "ScanResult",
    "SkippedEntry",
    "import_from",
    "merge",
    "settings_to_fields",
]
