# nrtk_sync/models.py
"""
Data models for the nrtk-sync payload and the persisted metadata record.
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from nrtk_sync.errors import PayloadMalformed

if TYPE_CHECKING:
    from nrtk_sync.config import SyncConfig

_UNSAFE_ANCHOR_CHARS = ("/", "\\", "\x00")
LANDING_ANCHOR = "index"


def _as_text(v: Any) -> Any:
    """null → "", numbers → str; everything else is left to pydantic."""
    if v is None:
        return ""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class Story(BaseModel):
    """One story of the site; ``anchor`` is the filename stem in the served tree."""

    model_config = ConfigDict(extra="ignore")

    uid: str = ""
    anchor: str = ""
    canonical_url: str = ""
    title: str = ""
    credits: str = ""
    content: str = ""
    story_date: str = ""
    is_landing: bool = False
    updated_at: str = ""
    url: str = ""
    hash: str = ""

    _text_fields = field_validator(
        "uid",
        "anchor",
        "canonical_url",
        "title",
        "credits",
        "content",
        "story_date",
        "updated_at",
        "url",
        "hash",
        mode="before",
    )(_as_text)

    @field_validator("is_landing", mode="before")
    def _null_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    def has_safe_anchor(self) -> bool:
        """True when the anchor is a single, non-traversing path segment."""
        anchor = self.anchor
        if not anchor or anchor in (".", ".."):
            return False
        return not any(ch in anchor for ch in _UNSAFE_ANCHOR_CHARS)

    @property
    def sitemap_priority(self) -> float:
        if self.anchor == LANDING_ANCHOR or self.is_landing:
            return 1.0
        return 0.8

    def lastmod(self) -> str:
        """``updated_at`` as UTC, whole seconds, with a literal ``+00:00`` suffix."""
        if not self.updated_at:
            return ""
        try:
            moment = datetime.fromisoformat(self.updated_at)
            if moment.tzinfo is not None:
                moment = moment.astimezone(timezone.utc)
        except (ValueError, OverflowError):
            # unparsable, or shifted past datetime.min/max by the offset
            return f"{self.updated_at[:19]}+00:00"
        return moment.replace(tzinfo=None).isoformat(timespec="seconds") + "+00:00"


class SiteData(BaseModel):
    """The payload of one sync cycle. Never persisted as such."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    entity: str = ""
    locale: str = ""
    site_name: str = ""
    logo_url: str = ""
    homepage_url: str = ""
    stories: List[Story] = Field(default_factory=list)
    error_page: str = ""

    _text_fields = field_validator(
        "title",
        "entity",
        "locale",
        "site_name",
        "logo_url",
        "homepage_url",
        "error_page",
        mode="before",
    )(_as_text)

    @field_validator("stories", mode="before")
    def _null_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @classmethod
    def parse(cls, payload: Union[bytes, str]) -> SiteData:
        """Validate raw payload bytes; any schema or JSON error is PayloadMalformed."""
        try:
            return cls.model_validate_json(payload)
        except ValidationError as exc:
            raise PayloadMalformed(
                f"payload rejected ({exc.error_count()} error(s)): {exc.errors()[0]['msg']}"
            ) from exc


class MetaObject(BaseModel):
    """State of the last accepted sync, persisted as ``meta.json``."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    entity: str = ""
    homepage_url: str = ""
    stories: List[Story] = Field(default_factory=list)
    checksum: str = ""
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    # superseded records are written to the snapshot directory instead
    is_expired: bool = Field(default=False, exclude=True)

    @classmethod
    def from_site(cls, site: SiteData, checksum: str) -> MetaObject:
        return cls(
            title=site.title,
            entity=site.entity,
            homepage_url=site.homepage_url,
            stories=list(site.stories),
            checksum=checksum,
        )

    def file_path(self, config: SyncConfig) -> Path:
        if self.is_expired:
            return config.snapshot_dir / f"meta.{self.checksum}.json"
        return config.meta_path

    def dump(self) -> bytes:
        return self.model_dump_json().encode("utf-8")


__all__ = ["Story", "SiteData", "MetaObject", "LANDING_ANCHOR"]
