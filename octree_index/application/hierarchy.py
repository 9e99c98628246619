from __future__ import annotations

import logging
import struct
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Tuple

from octree_index.application.contracts import MalformedDocumentError
from octree_index.application.interfaces import MetadataFetcher
from octree_index.domain.entities import DiscoveryState, OctreeDescriptor, OctreeNode
from octree_index.domain.geometry import compute_child_box

logger = logging.getLogger(__name__)

# uint8 child mask, uint32 point count
RECORD = struct.Struct('<BI')


def hierarchy_url(node: OctreeNode) -> str:
    return f'{node.descriptor.base_directory}/{node.hierarchy_path}/{node.name}.hrc'


def decode_chunk(data: bytes, start_name: str) -> List[Tuple[str, int, int]]:
    """
    Breadth-first (name, child_mask, num_points) records of one hierarchy chunk.

    The first record describes the node the chunk was fetched for.
    """
    if len(data) < RECORD.size or len(data) % RECORD.size:
        raise MalformedDocumentError(f'hierarchy chunk of {start_name} has invalid length {len(data)}')

    mask, num_points = RECORD.unpack_from(data, 0)
    records = [(start_name, mask, num_points)]
    queue: Deque[Tuple[str, int]] = deque([(start_name, mask)])
    offset = RECORD.size

    while queue and offset < len(data):
        name, mask = queue.popleft()
        for i in range(8):
            if not mask & (1 << i):
                continue
            if offset >= len(data):
                break
            child_mask, child_points = RECORD.unpack_from(data, offset)
            offset += RECORD.size
            child_name = f'{name}{i}'
            records.append((child_name, child_mask, child_points))
            queue.append((child_name, child_mask))

    return records


@dataclass
class HierarchyLoader:
    fetcher: MetadataFetcher

    async def load_chunk(self, descriptor: OctreeDescriptor, node: OctreeNode) -> List[OctreeNode]:
        """Fetch the chunk below `node` and attach every node it describes. Returns the new nodes."""
        url = hierarchy_url(node)
        data = await self.fetcher.fetch_bytes(url)
        records = decode_chunk(data, node.name)
        logger.debug(f'hierarchy chunk {url}: {len(records)} records')

        _, mask, num_points = records[0]
        if num_points:
            node.num_points = num_points
        node.has_children = node.has_children or mask != 0

        created: List[OctreeNode] = []
        masks = {node.name: mask}
        for name, child_mask, child_points in records[1:]:
            parent = descriptor.nodes.get(name[:-1])
            if parent is None:
                raise MalformedDocumentError(f'hierarchy chunk names {name!r} before its parent', url=url)

            index = int(name[-1])
            child = descriptor.nodes.get(name)
            if child is None:
                level = len(name) - 1
                child = OctreeNode(
                    name=name,
                    descriptor=descriptor,
                    bounding_box=compute_child_box(parent.bounding_box, index),
                    level=level,
                    spacing=descriptor.spacing / 2 ** level,
                    num_points=child_points,
                    has_children=child_mask != 0,
                    discovery=DiscoveryState.UNDISCOVERED,
                )
                parent.add_child(index, child)
                descriptor.register(child)
                created.append(child)
            masks[name] = child_mask

        for name, child_mask in masks.items():
            current = descriptor.nodes[name]
            expected = sum(1 for i in range(8) if child_mask & (1 << i))
            if len(current.children) == expected:
                current.discovery = DiscoveryState.DISCOVERED

        return created
