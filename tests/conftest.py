# File: tests/conftest.py
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from nrtk_sync.config import SyncConfig
from nrtk_sync.errors import SourceUnavailable


SAMPLE_PAYLOAD: Dict[str, Any] = {
    "title": "T",
    "entity": "E",
    "homepage_url": "https://x",
    "stories": [
        {
            "anchor": "index",
            "canonical_url": "https://x/",
            "updated_at": "2024-01-01T00:00:00Z",
        }
    ],
    "error_page": "nope",
}


def encode(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload).encode("utf-8")


class StubSource:
    """In-memory payload source; ``delay`` makes fetch slow, ``error`` makes it fail."""

    def __init__(self, payload: bytes, delay: float = 0.0, error: Optional[str] = None):
        self.payload = payload
        self.delay = delay
        self.error = error
        self.calls = 0
        self.active = 0
        self.max_active = 0

    def describe(self) -> str:
        return "stub"

    async def fetch(self) -> bytes:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error:
                raise SourceUnavailable(self.error)
            return self.payload
        finally:
            self.active -= 1


@pytest.fixture()
def sample_payload() -> bytes:
    return encode(SAMPLE_PAYLOAD)


@pytest.fixture()
def local_file(tmp_path: Path, sample_payload: bytes) -> Path:
    """Write the sample payload to a temporary ``local.json``."""
    path = tmp_path / "local.json"
    path.write_bytes(sample_payload)
    return path


@pytest.fixture()
def config(tmp_path: Path, local_file: Path) -> SyncConfig:
    """
    Return a SyncConfig rooted in a temporary directory, reading the local file.
    """
    return SyncConfig(
        app_name=str(tmp_path / ".nrtk"),
        api_token="secret-token",
        api_uuid="project-uuid",
        mode_fetch_local=True,
        local_path=str(local_file),
    )


@pytest.fixture()
def stub_source(sample_payload: bytes) -> StubSource:
    return StubSource(sample_payload)
