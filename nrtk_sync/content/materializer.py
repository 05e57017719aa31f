"""
Materialization of one content generation.

The served root (``<app>/www``) is a symlink into ``<app>/releases``. A new
generation is written into a staging directory, renamed into place and only
then published by atomically replacing the symlink, so the server always sees
either the previous or the next complete tree.
"""
from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from nrtk_sync.config import SyncConfig
from nrtk_sync.content.sitemap import build_sitemap
from nrtk_sync.content.writer import ContentFile, SITEMAP_FILENAME, write_content
from nrtk_sync.errors import DirSetupFailed, WriteFailed
from nrtk_sync.logger import logger
from nrtk_sync.models import MetaObject, SiteData

if TYPE_CHECKING:
    from nrtk_sync.store.meta_store import MetaStore

_STAGING_PREFIX = ".staging-"


@dataclass(slots=True)
class MaterializeReport:
    """Outcome of a materialization pass."""

    generation: Optional[Path] = None
    written: List[Path] = field(default_factory=list)
    failed: List[WriteFailed] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    meta_path: Optional[Path] = None


class Materializer:
    """Builds generations of the served tree and publishes them."""

    def __init__(self, config: SyncConfig) -> None:
        self.config = config

    def ensure_dirs(self) -> None:
        """Create the application root, releases and snapshot directories."""
        for directory in (self.config.app_root, self.config.releases_dir, self.config.snapshot_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise DirSetupFailed(f"unable to create {directory}: {exc}") from exc

    def current_generation(self) -> Optional[Path]:
        link = self.config.content_dir
        if link.is_symlink():
            return link.resolve()
        if link.is_dir():
            return link
        return None

    def materialize(self, site: SiteData, meta: MetaObject, store: MetaStore) -> MaterializeReport:
        self.ensure_dirs()
        report = MaterializeReport()
        previous = self.current_generation()

        staging = Path(tempfile.mkdtemp(prefix=_STAGING_PREFIX, dir=self.config.releases_dir))
        logger.info("Building generation in %s", staging)
        try:
            # mkdtemp creates 0700; the tree may be served by another user
            os.chmod(staging, 0o755)
            for item in self._content_files(site, report):
                try:
                    report.written.append(write_content(staging, item))
                except WriteFailed as exc:
                    logger.error("%s", exc)
                    report.failed.append(exc)
            generation = self.config.releases_dir / self._generation_name(meta)
            os.rename(staging, generation)
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise DirSetupFailed(f"unable to prepare generation in {staging}: {exc}") from exc
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        report.written = [generation / p.name for p in report.written]
        self._publish(generation)
        report.generation = generation

        try:
            report.meta_path = store.save(meta)
        except WriteFailed as exc:
            logger.error("%s", exc)
            report.failed.append(exc)

        report.removed = self._prune(keep={generation, previous})
        logger.info(
            "Published %s: %d file(s) written, %d failed",
            generation.name,
            len(report.written),
            len(report.failed),
        )
        return report

    # -- internals ---------------------------------------------------------

    def _content_files(self, site: SiteData, report: MaterializeReport) -> List[ContentFile]:
        suffix = self.config.story_suffix
        items: List[ContentFile] = []
        for story in site.stories:
            try:
                items.append(ContentFile.for_story(story, suffix))
            except WriteFailed as exc:
                logger.error("Skipping story %r: %s", story.uid or story.anchor, exc)
                report.failed.append(exc)

        items.append(ContentFile.for_error_page(site.error_page, suffix))

        try:
            items.append(ContentFile.for_sitemap(build_sitemap(site.stories)))
        except ValueError as exc:
            # lxml refuses control characters in text nodes
            failure = WriteFailed(SITEMAP_FILENAME, str(exc))
            logger.error("%s", failure)
            report.failed.append(failure)
        return items

    @staticmethod
    def _stamp() -> str:
        return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")

    def _generation_name(self, meta: MetaObject) -> str:
        return f"{self._stamp()}-{meta.checksum[:12] or 'nochecksum'}"

    def _publish(self, generation: Path) -> None:
        link = self.config.content_dir
        try:
            if link.is_dir() and not link.is_symlink():
                # tree from an in-place layout: move it aside, pruned like any generation
                legacy = self.config.releases_dir / f"{self._stamp()}-legacy"
                os.rename(link, legacy)
                logger.info("Moved legacy content directory to %s", legacy)

            tmp_link = link.with_name(f".{link.name}.{os.getpid()}.tmp")
            if tmp_link.is_symlink() or tmp_link.exists():
                tmp_link.unlink()
            os.symlink(os.path.relpath(generation, link.parent), tmp_link)
            os.replace(tmp_link, link)
        except OSError as exc:
            raise DirSetupFailed(f"unable to publish {generation}: {exc}") from exc
        logger.info("Serving %s from %s", link, generation)

    def _prune(self, keep: set[Optional[Path]]) -> List[Path]:
        """Delete generations other than ``keep``; failures are logged only."""
        kept = {p.resolve() for p in keep if p is not None}
        removed: List[Path] = []
        for entry in sorted(self.config.releases_dir.iterdir()):
            if entry.resolve() in kept or not entry.is_dir():
                continue
            try:
                shutil.rmtree(entry)
            except OSError as exc:
                logger.warning("Unable to remove %s: %s", entry, exc)
                continue
            logger.debug("Removed %s", entry)
            removed.append(entry)
        return removed


__all__ = ["Materializer", "MaterializeReport"]
