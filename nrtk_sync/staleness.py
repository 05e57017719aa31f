"""Staleness detection: is the fetched payload new content?"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from nrtk_sync.errors import WriteFailed
from nrtk_sync.logger import logger
from nrtk_sync.store.meta_store import MetaStore


class Verdict(str, Enum):
    MISSING = "missing"
    CHANGED = "changed"
    FRESH = "fresh"


@dataclass(slots=True)
class StalenessReport:
    verdict: Verdict
    checksum: str
    previous_checksum: str = ""
    snapshot: Optional[Path] = None

    @property
    def stale(self) -> bool:
        return self.verdict is not Verdict.FRESH


def compute_checksum(payload: bytes) -> str:
    """SHA-256 of the raw payload bytes, lowercase hex."""
    return hashlib.sha256(payload).hexdigest()


def check_staleness(store: MetaStore, checksum: str) -> StalenessReport:
    """Compare ``checksum`` with the persisted record.

    A missing, unreadable or invalid record is reported as MISSING. When the
    checksums differ the persisted record is archived before anything else
    happens; a failed archive is logged and does not stop the sync.
    """
    persisted = store.load()
    if persisted is None:
        return StalenessReport(Verdict.MISSING, checksum)

    previous = persisted.record.checksum
    if previous == checksum:
        logger.debug("Checksum %s matches %s", checksum[:12], store.path)
        return StalenessReport(Verdict.FRESH, checksum, previous_checksum=previous)

    logger.info("Checksum changed: %s -> %s", previous[:12] or "<none>", checksum[:12])
    report = StalenessReport(Verdict.CHANGED, checksum, previous_checksum=previous)
    try:
        report.snapshot = store.archive(persisted)
    except WriteFailed as exc:
        logger.error("Snapshot of %s failed: %s", previous[:12], exc)
    return report


__all__ = ["Verdict", "StalenessReport", "compute_checksum", "check_staleness"]
