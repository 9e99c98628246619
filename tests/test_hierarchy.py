import struct

import pytest

from octree_index.application.contracts import MalformedDocumentError
from octree_index.application.hierarchy import HierarchyLoader, decode_chunk, hierarchy_url
from octree_index.application.use_case import load
from octree_index.domain.entities import DiscoveryState
from octree_index.domain.geometry import compute_child_box

from conftest import make_document


def _chunk(*records):
    return b''.join(struct.pack('<BI', mask, points) for mask, points in records)


CHUNK = _chunk(
    (0b00000011, 500),  # r -> r0, r1
    (0b00000100, 100),  # r0 -> r02
    (0b00000000, 50),   # r1 leaf
    (0b00000001, 7),    # r02 has children beyond this chunk
)


def test_decode_chunk_breadth_first():
    assert decode_chunk(CHUNK, 'r') == [
        ('r', 0b011, 500),
        ('r0', 0b100, 100),
        ('r1', 0, 50),
        ('r02', 0b001, 7),
    ]


@pytest.mark.parametrize('data', [b'', b'\x01\x00\x00', _chunk((1, 1)) + b'\x00'])
def test_decode_chunk_rejects_bad_length(data):
    with pytest.raises(MalformedDocumentError):
        decode_chunk(data, 'r')


@pytest.mark.asyncio
async def test_load_chunk_discovers_nodes(cloud_url, fetcher_for):
    fetcher = fetcher_for(make_document(version='1.7', hierarchy=[], spacing=2.0))
    descriptor = await load(cloud_url, fetcher=fetcher)
    await descriptor.root.load()

    root = descriptor.root
    assert hierarchy_url(root) == 'http://host/cloud.js/../data/r/r.hrc'
    fetcher.blobs[hierarchy_url(root)] = CHUNK

    created = await HierarchyLoader(fetcher).load_chunk(descriptor, root)

    assert [n.name for n in created] == ['r0', 'r1', 'r02']
    assert set(descriptor.nodes) == {'r', 'r0', 'r1', 'r02'}
    assert root.num_points == 500
    assert root.discovery is DiscoveryState.DISCOVERED

    r0, r1, r02 = (descriptor.nodes[n] for n in ('r0', 'r1', 'r02'))
    assert r0.bounding_box == compute_child_box(root.bounding_box, 0)
    assert r02.bounding_box == compute_child_box(r0.bounding_box, 2)
    assert r02.level == 2
    assert r02.spacing == 0.5
    assert r0.discovery is DiscoveryState.DISCOVERED
    assert r1.is_leaf
    assert not r1.has_children
    assert r02.discovery is DiscoveryState.UNDISCOVERED
    assert r02.has_children
    assert not r02.is_leaf


@pytest.mark.asyncio
async def test_hierarchy_path_uses_step_size(cloud_url, fetcher_for):
    fetcher = fetcher_for(make_document(version='1.7', hierarchy=[], hierarchyStepSize=2))
    descriptor = await load(cloud_url, fetcher=fetcher)
    await descriptor.root.load()

    fetcher.blobs[hierarchy_url(descriptor.root)] = _chunk((1, 1), (1, 1), (1, 1), (1, 1))
    await HierarchyLoader(fetcher).load_chunk(descriptor, descriptor.root)

    node = descriptor.nodes['r000']
    assert node.hierarchy_path == 'r/00'
    assert node.url == 'http://host/cloud.js/../data/r/00/r000'
    assert hierarchy_url(node) == 'http://host/cloud.js/../data/r/00/r000.hrc'
