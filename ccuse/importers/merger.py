"""Additive merge of imported candidates into the profile store."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from ..exceptions import InvalidProfileNameError
from ..profiles.store import ProfileStore
from .base import CandidateProfile, CandidateSource, SkippedEntry

logger = logging.getLogger(__name__)


@dataclass
class MergeReport:
    """Outcome of one import run."""

    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    rejected: list[SkippedEntry] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added)


def merge(candidates: Iterable[CandidateProfile], store: ProfileStore) -> MergeReport:
    """Merge candidates into the store without touching existing profiles.

    A candidate whose name already exists, ignoring case, in the store or
    earlier in the same batch is skipped; the existing profile wins.
    Candidates that cannot be turned into a valid profile are rejected with a
    reason. All accepted profiles are persisted with a single store write, so
    re-running an import simply skips what was already imported.

    Args:
        candidates: Parsed candidates from a source
        store: Loaded profile store

    Returns:
        Report of added, skipped and rejected entries
    """
    report = MergeReport()
    accepted = []
    seen: set[str] = set()

    for candidate in candidates:
        name = candidate.name
        if store.conflicting_name(name) is not None or name.casefold() in seen:
            logger.info(f"Skipping import of '{name}': profile already exists")
            report.skipped.append(name)
            continue

        try:
            store.check_name(name)
            profile = candidate.to_profile()
        except (InvalidProfileNameError, ValueError) as e:
            logger.warning(f"Rejecting import of '{candidate.original_name}': {e}")
            report.rejected.append(SkippedEntry(candidate.source_id, str(e)))
            continue

        accepted.append(profile)
        seen.add(name.casefold())

    if accepted:
        store.add_all(accepted)
        report.added = [profile.name for profile in accepted]

    logger.info(
        f"Import finished: {len(report.added)} added, {len(report.skipped)} skipped, "
        f"{len(report.rejected)} rejected"
    )
    return report


def import_from(source: CandidateSource, store: ProfileStore) -> MergeReport:
    """Scan a source and merge its candidates into the store.

    Records the source itself skipped are reported as rejected.

    Raises:
        SourceNotFoundError: If the source does not exist
        SourceReadError: If the source cannot be read
    """
    logger.info(f"Importing profiles from {source.name}")
    scan = source.scan()
    report = merge(scan, store)
    report.rejected = list(scan.skipped) + report.rejected
    return report
