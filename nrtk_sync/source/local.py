# nrtk_sync/source/local.py
"""
Local source: reads the payload from a JSON file on disk.
"""
from __future__ import annotations

import asyncio
from pathlib import Path

from nrtk_sync.config import SyncConfig
from nrtk_sync.errors import SourceUnavailable
from nrtk_sync.logger import logger


class LocalSource:
    """Reads ``config.local_path`` (``local.json`` by default)."""

    def __init__(self, config: SyncConfig) -> None:
        self.path = Path(config.local_path)

    def describe(self) -> str:
        return str(self.path)

    async def fetch(self) -> bytes:
        logger.info("Reading data from %s", self.path)
        try:
            return await asyncio.to_thread(self.path.read_bytes)
        except OSError as exc:
            raise SourceUnavailable(f"unable to read data from {self.path}: {exc}") from exc
