from .connectors import Config, FileFetcher, HttpConfig, HttpFetcher, S3Config, S3Fetcher, SchemeFetcher

__all__ = [
    'Config',
    'HttpConfig',
    'S3Config',
    'SchemeFetcher',
    'FileFetcher',
    'HttpFetcher',
    'S3Fetcher',
]
