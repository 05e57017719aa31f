"""
Single writer for every file nrtk-sync produces.

Stories, the error page, the sitemap and metadata records are all turned into a
:class:`ContentFile` first; :func:`write_content` is the only place that opens
files for writing.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from nrtk_sync.errors import WriteFailed
from nrtk_sync.logger import logger
from nrtk_sync.models import MetaObject, Story

ERROR_PAGE_STEM = "404"
SITEMAP_FILENAME = "sitemap.xml"


class ContentKind(str, Enum):
    STORY = "story"
    ERROR_PAGE = "error_page"
    SITEMAP = "sitemap"
    METADATA = "metadata"


@dataclass(frozen=True, slots=True)
class ContentFile:
    """A file to materialize: what it is, its name inside the target dir and its bytes."""

    kind: ContentKind
    filename: str
    body: bytes

    @classmethod
    def for_story(cls, story: Story, suffix: str) -> ContentFile:
        if not story.has_safe_anchor():
            raise WriteFailed(story.anchor or "<empty anchor>", "anchor is not a safe path segment")
        return cls(ContentKind.STORY, f"{story.anchor}{suffix}", story.content.encode("utf-8"))

    @classmethod
    def for_error_page(cls, body: str, suffix: str) -> ContentFile:
        return cls(ContentKind.ERROR_PAGE, f"{ERROR_PAGE_STEM}{suffix}", body.encode("utf-8"))

    @classmethod
    def for_sitemap(cls, document: bytes) -> ContentFile:
        return cls(ContentKind.SITEMAP, SITEMAP_FILENAME, document)

    @classmethod
    def for_metadata(
        cls, meta: MetaObject, filename: str, raw: Optional[bytes] = None
    ) -> ContentFile:
        """``raw`` keeps an already persisted record byte-for-byte (snapshots)."""
        return cls(ContentKind.METADATA, filename, meta.dump() if raw is None else raw)


def write_content(directory: Path, item: ContentFile, *, atomic: bool = False) -> Path:
    """Create or truncate ``directory/item.filename`` and write the body.

    With ``atomic=True`` the body goes to a temporary sibling first and is moved
    over the target with :func:`os.replace`. Otherwise a failure after the file
    was opened leaves the partial file behind.
    """
    path = directory / item.filename
    target = path.with_name(f".{path.name}.tmp.{os.getpid()}") if atomic else path

    try:
        fh = open(target, "wb")
    except OSError as exc:
        raise WriteFailed(path, exc.strerror or str(exc)) from exc

    logger.debug("Saving %s (%s, %d bytes)", path, item.kind.value, len(item.body))
    try:
        with fh:
            fh.write(item.body)
        if atomic:
            os.replace(target, path)
    except OSError as exc:
        raise WriteFailed(path, exc.strerror or str(exc)) from exc
    return path


__all__ = ["ContentKind", "ContentFile", "write_content", "ERROR_PAGE_STEM", "SITEMAP_FILENAME"]
