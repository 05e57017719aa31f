"""
Mapping of request paths to files of the served tree.

Resolution is purely lexical plus ``is_file`` checks, so it can be tested
without a running server.
"""
from __future__ import annotations

import posixpath
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Optional

from nrtk_sync.content.writer import ERROR_PAGE_STEM

# scanner noise, answered without touching the filesystem
DENYLIST: FrozenSet[str] = frozenset({"/favicon.ico", "/robots.txt", "/config/", "/.git/config"})
INDEX_STEM = "index"


class Outcome(str, Enum):
    DENIED = "denied"
    TRIGGER = "trigger"
    FILE = "file"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class Resolution:
    outcome: Outcome
    path: Optional[Path] = None
    status: int = 200


def clean_path(request_path: str) -> str:
    """Resolve ``.`` and ``..`` segments; the result is relative and never climbs above the root."""
    cleaned = posixpath.normpath("/" + request_path.lstrip("/"))
    return cleaned.lstrip("/")


def resolve(request_path: str, content_dir: Path, suffix: str, sync_path: str) -> Resolution:
    """Decide what to answer for ``request_path``.

    Order: denylist, sync trigger, ``/`` (index, no existence check), the
    cleaned path as a regular file, the cleaned path plus ``suffix``, and
    finally the error page with status 404.
    """
    if request_path in DENYLIST:
        return Resolution(Outcome.DENIED, status=404)
    if request_path == sync_path:
        return Resolution(Outcome.TRIGGER)

    index = content_dir / f"{INDEX_STEM}{suffix}"
    not_found = Resolution(Outcome.NOT_FOUND, content_dir / f"{ERROR_PAGE_STEM}{suffix}", 404)

    if request_path == "/":
        return Resolution(Outcome.FILE, index)
    if "\x00" in request_path:
        return not_found

    relative = clean_path(request_path)
    if not relative:
        return Resolution(Outcome.FILE, index)

    candidate = content_dir / relative
    if candidate.is_file():
        return Resolution(Outcome.FILE, candidate)

    if suffix:
        suffixed = content_dir / f"{relative}{suffix}"
        if suffixed.is_file():
            return Resolution(Outcome.FILE, suffixed)

    return not_found


__all__ = ["DENYLIST", "Outcome", "Resolution", "clean_path", "resolve"]
