import asyncio
import logging
from typing import Optional

import aiohttp

from octree_index.application.contracts import MalformedDocumentError, TransportError
from octree_index.port.connectors.config import HttpConfig

logger = logging.getLogger(__name__)


class HttpFetcher:
    def __init__(self, config: Optional[HttpConfig] = None, session: Optional[aiohttp.ClientSession] = None):
        self._config = config or HttpConfig()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={'User-Agent': self._config.user_agent},
                timeout=aiohttp.ClientTimeout(total=self._config.timeout),
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def _get(self, url: str) -> bytes:
        session = self._ensure_session()
        try:
            async with session.get(url) as response:
                if response.status >= 400:
                    raise TransportError(f'GET {url} returned HTTP {response.status}', url=url)
                return await response.read()
        except asyncio.TimeoutError as e:
            raise TransportError(f'GET {url} timed out', url=url) from e
        except aiohttp.ClientError as e:
            raise TransportError(f'GET {url} failed: {e}', url=url) from e

    async def fetch_bytes(self, url: str) -> bytes:
        data = await self._get(url)
        logger.debug(f'fetched {len(data)} bytes from {url}')
        return data

    async def fetch_text(self, url: str) -> str:
        data = await self._get(url)
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(f'{url} is not UTF-8 text', url=url) from e
