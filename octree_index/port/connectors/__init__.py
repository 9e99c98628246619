from .base import SchemeFetcher
from .config import Config, HttpConfig, S3Config
from .file import FileFetcher
from .http import HttpFetcher
from .s3 import S3Fetcher

__all__ = [
    'Config',
    'HttpConfig',
    'S3Config',
    'SchemeFetcher',
    'FileFetcher',
    'HttpFetcher',
    'S3Fetcher',
]
