"""
Persistence of the single metadata record (``meta.json``) and its snapshots.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from nrtk_sync.config import SyncConfig
from nrtk_sync.content.writer import ContentFile, write_content
from nrtk_sync.logger import logger
from nrtk_sync.models import MetaObject


@dataclass(slots=True)
class PersistedMeta:
    """A metadata record as found on disk, together with its exact bytes."""

    record: MetaObject
    raw: bytes


class MetaStore:
    """Reads, writes and archives the metadata record of one application root."""

    def __init__(self, config: SyncConfig) -> None:
        self.config = config

    @property
    def path(self) -> Path:
        return self.config.meta_path

    def load(self) -> Optional[PersistedMeta]:
        """Return the current record, or None if it is missing, unreadable or invalid."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            logger.info("No metadata at %s", self.path)
            return None
        except OSError as exc:
            logger.warning("Unable to read metadata at %s: %s", self.path, exc)
            return None

        logger.debug("Reading metadata from %s", self.path)
        try:
            record = MetaObject.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Invalid metadata at %s: %s", self.path, exc.errors()[0]["msg"])
            return None
        return PersistedMeta(record=record, raw=raw)

    def save(self, meta: MetaObject) -> Path:
        """Write ``meta`` to its destination, replacing the previous file atomically."""
        target = meta.file_path(self.config)
        item = ContentFile.for_metadata(meta, target.name)
        path = write_content(target.parent, item, atomic=True)
        logger.info("Saved metadata %s (checksum %s)", path, meta.checksum[:12])
        return path

    def archive(self, persisted: PersistedMeta) -> Path:
        """Copy a superseded record verbatim to ``snapshot/meta.<checksum>.json``."""
        record = persisted.record.model_copy(update={"is_expired": True})
        target = record.file_path(self.config)
        item = ContentFile.for_metadata(record, target.name, raw=persisted.raw)
        path = write_content(target.parent, item, atomic=True)
        logger.info("Archived metadata %s to %s", record.checksum[:12], path)
        return path

    def snapshots(self) -> List[Path]:
        directory = self.config.snapshot_dir
        if not directory.is_dir():
            return []
        return sorted(directory.glob("meta.*.json"))


__all__ = ["MetaStore", "PersistedMeta"]
