"""Shared fixtures: an in-memory fetcher and metadata document builders."""

import json
from typing import Any, Dict, List, Optional

import pytest

from octree_index.application.contracts import TransportError


class FakeFetcher:
    def __init__(self, texts: Optional[Dict[str, str]] = None, blobs: Optional[Dict[str, bytes]] = None):
        self.texts = dict(texts or {})
        self.blobs = dict(blobs or {})
        self.requested: List[str] = []

    async def fetch_text(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.texts:
            raise TransportError(f'no document at {url}', url=url)
        return self.texts[url]

    async def fetch_bytes(self, url: str) -> bytes:
        self.requested.append(url)
        if url not in self.blobs:
            raise TransportError(f'no payload at {url}', url=url)
        return self.blobs[url]


def make_document(**overrides: Any) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        'version': '1.4',
        'octreeDir': 'data',
        'projection': '+proj=utm +zone=37 +datum=WGS84',
        'points': 113,
        'boundingBox': {'lx': 100.0, 'ly': 200.0, 'lz': 10.0, 'ux': 116.0, 'uy': 216.0, 'uz': 26.0},
        'tightBoundingBox': {'lx': 101.0, 'ly': 202.0, 'lz': 11.0, 'ux': 115.0, 'uy': 212.0, 'uz': 20.0},
        'pointAttributes': ['POSITION_CARTESIAN', 'COLOR_PACKED'],
        'spacing': 1.0,
        'scale': 0.001,
        'hierarchyStepSize': 5,
        'hierarchy': [['r', 100], ['r0', 10], ['r01', 3]],
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def cloud_url() -> str:
    return 'http://host/cloud.js'


@pytest.fixture
def fetcher_for(cloud_url):
    def _make(doc: Dict[str, Any], blobs: Optional[Dict[str, bytes]] = None) -> FakeFetcher:
        return FakeFetcher(texts={cloud_url: json.dumps(doc)}, blobs=blobs)
    return _make
