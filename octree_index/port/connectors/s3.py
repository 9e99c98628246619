import logging
from contextlib import asynccontextmanager
from typing import Tuple
from urllib.parse import urlparse

from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError

from octree_index.application.contracts import MalformedDocumentError, TransportError
from octree_index.port.connectors.config import S3Config

logger = logging.getLogger(__name__)


def split_s3_url(url: str) -> Tuple[str, str]:
    parsed = urlparse(url)
    if parsed.scheme != 's3' or not parsed.netloc:
        raise TransportError(f'not an s3 url: {url}', url=url)
    key = parsed.path.lstrip('/')
    # octree dirs are joined as "<url>/../<dir>", collapse that before asking S3
    parts = []
    for segment in key.split('/'):
        if segment == '..':
            if parts:
                parts.pop()
        elif segment and segment != '.':
            parts.append(segment)
    return parsed.netloc, '/'.join(parts)


class S3Fetcher:
    def __init__(self, net_params: S3Config):
        self._net_params = net_params
        self.session = get_session()

    @asynccontextmanager
    async def get_client(self):
        async with self.session.create_client(
            's3',
            region_name=self._net_params.region_name,
            endpoint_url=self._net_params.endpoint_url,
            aws_access_key_id=self._net_params.access_key,
            aws_secret_access_key=self._net_params.secret_key,
        ) as client:
            yield client

    async def fetch_bytes(self, url: str) -> bytes:
        bucket, key = split_s3_url(url)
        async with self.get_client() as client:
            try:
                response = await client.get_object(Bucket=bucket, Key=key)
                async with response['Body'] as stream:
                    data = await stream.read()
            except ClientError as e:
                code = e.response.get('Error', {}).get('Code')
                raise TransportError(f'cannot read s3://{bucket}/{key}: {code}', url=url) from e
            except BotoCoreError as e:
                raise TransportError(f'cannot read s3://{bucket}/{key}: {e}', url=url) from e
        logger.debug(f'Downloaded object {key} ({len(data)} bytes).')
        return data

    async def fetch_text(self, url: str) -> str:
        data = await self.fetch_bytes(url)
        try:
            return data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(f'{url} is not UTF-8 text', url=url) from e
