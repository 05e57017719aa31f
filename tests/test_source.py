# File: tests/test_source.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web
from nrtk_sync.errors import ConfigMissing, SourceUnavailable
from nrtk_sync.source import LocalSource, RemoteSource, select_source
from nrtk_sync.source.remote import USER_AGENT


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


# --------------------------------------------------------------------------- #
#                            Test-server fixtures                             #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def seen_headers() -> list:
    return []


@pytest_asyncio.fixture
async def api_server(
    unused_tcp_port: int, sample_payload: bytes, seen_headers: list
) -> AsyncIterator[str]:
    """Fake project API: checks the token, answers 500 and sleeps on demand."""
    app = web.Application()

    async def handle_project(request: web.Request):
        seen_headers.append(request.headers.copy())
        if request.headers.get("Authorization") != "Token secret-token":
            return web.Response(status=403, text="forbidden")
        return web.Response(body=sample_payload, content_type="application/json")

    async def handle_broken(_):
        return web.Response(status=500, text="boom")

    async def handle_slow(_):
        await asyncio.sleep(2)
        return web.Response(body=sample_payload)

    app.router.add_get("/api/project/project-uuid/", handle_project)
    app.router.add_get("/api/project/broken/", handle_broken)
    app.router.add_get("/api/project/slow/", handle_slow)

    async for url in _serve_app(app, unused_tcp_port):
        yield url


def remote_config(config, base_url: str, **updates):
    return config.model_copy(update={"api_base_url": f"{base_url}/api", **updates})


# --------------------------------------------------------------------------- #
#                                   Tests                                     #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_remote_fetch(config, api_server: str, sample_payload: bytes):
    source = RemoteSource(remote_config(config, api_server))
    assert source.describe() == f"{api_server}/api/project/project-uuid/"
    assert await source.fetch() == sample_payload


@pytest.mark.asyncio()
async def test_remote_sends_headers(config, api_server: str, seen_headers: list):
    await RemoteSource(remote_config(config, api_server)).fetch()
    assert seen_headers[0]["Authorization"] == "Token secret-token"
    assert seen_headers[0]["User-Agent"] == USER_AGENT


@pytest.mark.asyncio()
async def test_remote_wrong_token(config, api_server: str):
    source = RemoteSource(remote_config(config, api_server, api_token="wrong"))
    with pytest.raises(SourceUnavailable, match="403"):
        await source.fetch()


@pytest.mark.asyncio()
async def test_remote_server_error(config, api_server: str):
    source = RemoteSource(remote_config(config, api_server, api_uuid="broken"))
    with pytest.raises(SourceUnavailable, match="500"):
        await source.fetch()


@pytest.mark.asyncio()
async def test_remote_timeout(config, api_server: str):
    source = RemoteSource(remote_config(config, api_server, api_uuid="slow", api_timeout=0.3))
    with pytest.raises(SourceUnavailable, match="no response"):
        await source.fetch()


@pytest.mark.asyncio()
async def test_remote_connection_refused(config, unused_tcp_port: int):
    source = RemoteSource(remote_config(config, f"http://localhost:{unused_tcp_port}"))
    with pytest.raises(SourceUnavailable):
        await source.fetch()


@pytest.mark.parametrize("missing", ["api_token", "api_uuid"])
def test_remote_requires_credentials(config, missing):
    with pytest.raises(ConfigMissing):
        RemoteSource(config.model_copy(update={missing: ""}))


@pytest.mark.asyncio()
async def test_local_fetch(config, sample_payload: bytes):
    assert await LocalSource(config).fetch() == sample_payload


@pytest.mark.asyncio()
async def test_local_missing(config, tmp_path):
    source = LocalSource(config.model_copy(update={"local_path": str(tmp_path / "nope.json")}))
    with pytest.raises(SourceUnavailable):
        await source.fetch()


def test_select_source(config):
    assert isinstance(select_source(config), LocalSource)
    assert isinstance(select_source(config.model_copy(update={"mode_fetch_local": False})), RemoteSource)
    no_token = config.model_copy(update={"mode_fetch_local": False, "api_token": ""})
    assert isinstance(select_source(no_token), LocalSource)
