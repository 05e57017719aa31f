"""nrtk_sync.source: получение сырого payload из API или из локального файла."""

from __future__ import annotations

from typing import Protocol, Union

from nrtk_sync.config import SyncConfig
from nrtk_sync.logger import logger
from nrtk_sync.source.local import LocalSource
from nrtk_sync.source.remote import RemoteSource


class PayloadSource(Protocol):
    """Anything that can produce the raw payload of one sync cycle."""

    def describe(self) -> str:
        ...

    async def fetch(self) -> bytes:
        ...


def select_source(config: SyncConfig) -> Union[RemoteSource, LocalSource]:
    """Удалённый API, если он не отключён и задан токен; иначе локальный файл."""
    if config.use_remote:
        return RemoteSource(config)
    if not config.mode_fetch_local:
        logger.warning("No API token configured, falling back to %s", config.local_path)
    return LocalSource(config)


__all__ = ["PayloadSource", "RemoteSource", "LocalSource", "select_source"]
