# nrtk_sync/source/remote.py
"""
Remote source: fetches the project payload from the Newsroom Toolkit API.
"""
from __future__ import annotations

import asyncio
from typing import Optional
from urllib.parse import quote

from aiohttp import ClientError, ClientSession, ClientTimeout

from nrtk_sync import __version__
from nrtk_sync.config import SyncConfig
from nrtk_sync.errors import ConfigMissing, SourceUnavailable
from nrtk_sync.logger import logger

USER_AGENT = f"nrtk-sync/{__version__}"


class RemoteSource:
    """Authenticated GET of ``{api_base_url}/project/{api_uuid}/`` with a total timeout.

    No retries: the caller decides when to try again.
    """

    def __init__(self, config: SyncConfig, session: Optional[ClientSession] = None) -> None:
        if not config.api_token:
            raise ConfigMissing("NRTK_API_TOKEN is required for the remote source")
        if not config.api_uuid:
            raise ConfigMissing("NRTK_API_UUID is required for the remote source")
        self.config = config
        self.url = f"{config.api_base_url}/project/{quote(config.api_uuid, safe='')}/"
        self._session = session

    def describe(self) -> str:
        return self.url

    async def fetch(self) -> bytes:
        """Return the response body; any non-2xx status or transport error is SourceUnavailable."""
        logger.info("Fetching data from %s", self.url)
        headers = {
            "User-Agent": USER_AGENT,
            "Authorization": f"Token {self.config.api_token}",
        }
        timeout = ClientTimeout(total=self.config.api_timeout)
        try:
            if self._session is not None:
                return await self._get(self._session, headers, timeout)
            async with ClientSession(raise_for_status=False) as session:
                return await self._get(session, headers, timeout)
        except asyncio.TimeoutError as exc:
            raise SourceUnavailable(
                f"request error: no response within {self.config.api_timeout}s"
            ) from exc
        except ClientError as exc:
            raise SourceUnavailable(f"request error: {exc}") from exc

    async def _get(self, session: ClientSession, headers: dict, timeout: ClientTimeout) -> bytes:
        async with session.get(self.url, headers=headers, timeout=timeout) as resp:
            if not 200 <= resp.status < 300:
                raise SourceUnavailable(f"request error: HTTP {resp.status}")
            body = await resp.read()
        logger.debug("Fetched %d bytes from %s", len(body), self.url)
        return body
