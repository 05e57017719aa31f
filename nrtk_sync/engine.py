# File: nrtk_sync/engine.py
"""nrtk_sync.engine: оркестрация цикла синхронизации (fetch → detect → materialize) и режимов запуска."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from nrtk_sync.config import SyncConfig
from nrtk_sync.content.materializer import MaterializeReport, Materializer
from nrtk_sync.errors import PayloadMalformed, SourceUnavailable
from nrtk_sync.logger import logger
from nrtk_sync.models import MetaObject, SiteData
from nrtk_sync.server import serve
from nrtk_sync.source import PayloadSource, select_source
from nrtk_sync.staleness import StalenessReport, check_staleness, compute_checksum
from nrtk_sync.store.meta_store import MetaStore

__all__ = ["SyncEngine", "SyncOutcome"]

UPDATED = "updated"
UNCHANGED = "unchanged"
FAILED = "failed"


@dataclass(slots=True)
class SyncOutcome:
    """Итог одного цикла синхронизации."""

    status: str
    checksum: str = ""
    error: str = ""
    staleness: Optional[StalenessReport] = None
    report: Optional[MaterializeReport] = None

    @property
    def ok(self) -> bool:
        return self.status != FAILED

    def summary(self) -> str:
        if self.status == FAILED:
            return f"{FAILED}: {self.error}"
        if self.report is not None and self.report.failed:
            return f"{self.status} ({len(self.report.failed)} file(s) failed)"
        return self.status


class SyncEngine:
    """Фасад для CLI, HTTP-сервера и тестов: один цикл синхронизации и режимы запуска.

    Цикл защищён asyncio.Lock: одновременно выполняется не больше одного цикла,
    остальные вызовы ждут его завершения и затем выполняются по очереди.
    """

    def __init__(self, config: SyncConfig, source: Optional[PayloadSource] = None) -> None:
        """Инициализирует движок; ConfigMissing поднимается сразу, до первого цикла."""
        self.config = config
        self.source = source if source is not None else select_source(config)
        self.store = MetaStore(config)
        self.materializer = Materializer(config)
        self._lock = asyncio.Lock()
        self.cycles = 0

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run_cycle(self) -> SyncOutcome:
        """Выполняет один цикл; SourceUnavailable и PayloadMalformed не роняют процесс."""
        if self._lock.locked():
            logger.info("Sync cycle already in progress, waiting for it to finish")
        async with self._lock:
            self.cycles += 1
            return await self._cycle()

    async def _cycle(self) -> SyncOutcome:
        try:
            payload = await self.source.fetch()
            site = SiteData.parse(payload)
        except (SourceUnavailable, PayloadMalformed) as exc:
            logger.error("Sync cycle abandoned: %s", exc)
            return SyncOutcome(FAILED, error=str(exc))

        checksum = compute_checksum(payload)
        await asyncio.to_thread(self.materializer.ensure_dirs)
        staleness = await asyncio.to_thread(check_staleness, self.store, checksum)

        force = self.config.mode_force_update
        if not staleness.stale and not force:
            logger.info("Nothing to update (checksum %s)", checksum[:12])
            return SyncOutcome(UNCHANGED, checksum, staleness=staleness)

        logger.info(
            "Sync content for %s with %d stories (MODE_FORCE_UPDATE=%s)",
            site.site_name or site.title,
            len(site.stories),
            force,
        )
        meta = MetaObject.from_site(site, checksum)
        report = await asyncio.to_thread(self.materializer.materialize, site, meta, self.store)
        return SyncOutcome(UPDATED, checksum, staleness=staleness, report=report)

    async def run_forever(self, interval_ms: int, iterations: Optional[int] = None) -> None:
        """Пауза interval_ms, затем цикл; бесконечно или iterations раз."""
        done = 0
        while iterations is None or done < iterations:
            logger.info("Taking a %.1f second nap", interval_ms / 1000)
            await asyncio.sleep(interval_ms / 1000)
            await self.run_cycle()
            done += 1

    async def run(self, serve_http: Optional[bool] = None) -> int:
        """Стартовый цикл, затем HTTP-сервер, опрос по таймеру или выход.

        Возвращает код завершения процесса для режима одного запуска.
        """
        cfg = self.config
        logger.info(
            "Init %s app instance on %s (source: %s)",
            cfg.app_name,
            cfg.host_name or "<unnamed host>",
            self.source.describe(),
        )
        outcome = await self.run_cycle()

        if serve_http is None:
            serve_http = cfg.http_server_enabled and cfg.http_server_port > 0
        if serve_http:
            await serve(self)
            return 0

        if cfg.mode_infinity > 0:
            await self.run_forever(cfg.mode_infinity)
            return 0

        return 0 if outcome.ok else 1
