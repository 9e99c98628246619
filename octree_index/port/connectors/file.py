import asyncio
import os
from pathlib import Path
from urllib.parse import unquote, urlparse

from octree_index.application.contracts import MalformedDocumentError, TransportError


def to_local_path(url: str) -> Path:
    if url.startswith('file://'):
        url = unquote(urlparse(url).path)
    # "<document>/../<dir>" joins are lexical, resolve them the same way
    return Path(os.path.normpath(url))


class FileFetcher:
    async def fetch_bytes(self, url: str) -> bytes:
        path = to_local_path(url)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise TransportError(f'cannot read {path}: {e}', url=url) from e

    async def fetch_text(self, url: str) -> str:
        data = await self.fetch_bytes(url)
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(f'{url} is not UTF-8 text', url=url) from e
