from os import environ as env
from typing import Optional
from urllib.parse import urlparse

from octree_index.application.contracts import TransportError
from octree_index.application.interfaces import MetadataFetcher
from octree_index.port.connectors.config import Config, S3Config
from octree_index.port.connectors.file import FileFetcher
from octree_index.port.connectors.http import HttpFetcher
from octree_index.port.connectors.s3 import S3Fetcher


class SchemeFetcher:
    """Routes each url to the transport its scheme names."""

    def __init__(self, config: Optional[Config] = None, s3_config: Optional[S3Config] = None):
        self._config = config or Config()
        self._s3_config = s3_config
        self._http: Optional[HttpFetcher] = None
        self._s3: Optional[S3Fetcher] = None
        self._file = FileFetcher()

    def _for(self, url: str) -> MetadataFetcher:
        scheme = urlparse(url).scheme.lower()
        if scheme in ('http', 'https'):
            if self._http is None:
                self._http = HttpFetcher(self._config.http)
            return self._http
        if scheme == 's3':
            if self._s3 is None:
                try:
                    self._s3 = S3Fetcher(self._s3_config or S3Config(**env))
                except ValueError as e:
                    raise TransportError(f'S3 is not configured: {e}', url=url) from e
            return self._s3
        if scheme in ('', 'file') or len(scheme) == 1:
            # single letter schemes are windows drive letters
            return self._file
        raise TransportError(f'unsupported url scheme {scheme!r}', url=url)

    async def fetch_text(self, url: str) -> str:
        return await self._for(url).fetch_text(url)

    async def fetch_bytes(self, url: str) -> bytes:
        return await self._for(url).fetch_bytes(url)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._http is not None:
            await self._http.close()
            self._http = None
