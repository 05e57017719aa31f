# nrtk_sync/server/app.py
"""
aiohttp application serving the materialized tree and the sync trigger.
"""
from __future__ import annotations

import asyncio
import hmac
from typing import TYPE_CHECKING, Optional

from aiohttp import web

from nrtk_sync.errors import SyncError
from nrtk_sync.logger import logger, mask_secret
from nrtk_sync.server.resolver import Outcome, resolve

if TYPE_CHECKING:
    from nrtk_sync.engine import SyncEngine

ENGINE_KEY: web.AppKey["SyncEngine"] = web.AppKey("engine")


def _token_matches(given: str, expected: str) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


async def handle_sync_request(request: web.Request) -> web.Response:
    """Run one sync cycle if ``?token=`` matches the configured API token."""
    engine = request.app[ENGINE_KEY]
    token = request.query.get("token", "")
    if not _token_matches(token, engine.config.api_token):
        logger.warning("Invalid sync token [%s] received from %s", mask_secret(token), request.remote)
        return web.Response(status=401, text="Unable to handle your request")

    logger.info("Sync signal received from %s", request.remote)
    try:
        # the cycle finishes even if the client goes away
        outcome = await asyncio.shield(engine.run_cycle())
    except SyncError as exc:
        # the server keeps serving the last published generation
        logger.error("Triggered sync failed: %s", exc)
        return web.Response(status=200, text=f"Sync signal received: failed: {exc}")
    return web.Response(status=200, text=f"Sync signal received: {outcome.summary()}")


async def handle_request(request: web.Request) -> web.StreamResponse:
    engine = request.app[ENGINE_KEY]
    config = engine.config
    resolution = resolve(
        request.path,
        config.content_dir,
        config.story_suffix,
        config.http_server_sync_handler,
    )

    if resolution.outcome is Outcome.DENIED:
        return web.Response(status=404, text="404: Not Found")
    if resolution.outcome is Outcome.TRIGGER:
        return await handle_sync_request(request)

    logger.info("Handling %s from %s", request.path, request.remote)
    if resolution.outcome is Outcome.FILE:
        logger.debug("Serving %s on behalf of %s", resolution.path, request.path)
        return web.FileResponse(resolution.path)

    logger.info("Error 404: %s", request.path)
    if resolution.path is not None and resolution.path.is_file():
        return web.FileResponse(resolution.path, status=404)
    return web.Response(status=404, text="404: Not Found")


def create_app(engine: SyncEngine) -> web.Application:
    app = web.Application()
    app[ENGINE_KEY] = engine
    app.router.add_route("*", "/{tail:.*}", handle_request)
    return app


async def serve(engine: SyncEngine, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Start the HTTP listener and block until cancelled."""
    host = host if host is not None else engine.config.http_server_host
    port = port if port is not None else engine.config.http_server_port

    runner = web.AppRunner(create_app(engine))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("Starting web server on %s:%s", host, port)
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


__all__ = ["ENGINE_KEY", "create_app", "serve", "handle_request", "handle_sync_request"]
