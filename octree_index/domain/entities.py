from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from octree_index.domain.attributes import PointAttributes
from octree_index.domain.geometry import Box3, Sphere, Vec3
from octree_index.domain.version import Version

if TYPE_CHECKING:
    from octree_index.application.interfaces import LoadCounter, MetadataFetcher, PayloadDecoder


logger = logging.getLogger(__name__)

ROOT_NAME = 'r'


class DiscoveryState(Enum):
    # descendants exist or may exist but their metadata is not fetched yet
    UNDISCOVERED = 'UNDISCOVERED'
    # children attached (possibly none: a genuine leaf)
    DISCOVERED = 'DISCOVERED'


@dataclass(eq=False)
class OctreeNode:
    name: str
    descriptor: 'OctreeDescriptor' = field(repr=False)
    bounding_box: Box3
    level: int = 0
    spacing: float = 0.0
    num_points: int = 0
    has_children: bool = False
    discovery: DiscoveryState = DiscoveryState.DISCOVERED
    children: Dict[int, 'OctreeNode'] = field(default_factory=dict, repr=False)
    parent: Optional['OctreeNode'] = field(default=None, repr=False)

    loaded: bool = field(default=False, init=False)
    loading: bool = field(default=False, init=False)
    points: Optional[Dict[str, Any]] = field(default=None, init=False, repr=False)
    _load_task: Optional[asyncio.Task] = field(default=None, init=False, repr=False)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_leaf(self) -> bool:
        return self.discovery is DiscoveryState.DISCOVERED and not self.children

    @property
    def bounding_sphere(self) -> Sphere:
        return self.bounding_box.bounding_sphere()

    def add_child(self, index: int, child: 'OctreeNode') -> None:
        if not 0 <= index <= 7:
            raise ValueError(f'child index must be in 0..7, got {index}')
        self.children[index] = child
        child.parent = self
        self.has_children = True

    @property
    def hierarchy_path(self) -> str:
        step = self.descriptor.hierarchy_step_size
        indices = self.name[1:]
        parts = [ROOT_NAME]
        if step > 0:
            for i in range(len(indices) // step):
                parts.append(indices[i * step:(i + 1) * step])
        return '/'.join(parts)

    @property
    def url(self) -> str:
        """Payload location without the decoder-specific extension."""
        version = self.descriptor.version
        base = self.descriptor.base_directory
        if version.equal_or_higher('1.5'):
            return f'{base}/{self.hierarchy_path}/{self.name}'
        if version.up_to('1.1'):
            return f'{base}/{self.name}'
        return f'{base}/{ROOT_NAME}/{self.name}'

    def load(self) -> Optional[asyncio.Task]:
        """Schedule the payload load on the running loop. Not awaited by the caller."""
        if self.loaded or self.loading:
            return self._load_task
        self.loading = True
        self._load_task = asyncio.get_running_loop().create_task(self._load_points())
        return self._load_task

    async def _load_points(self) -> None:
        descriptor = self.descriptor
        tracker = descriptor.tracker
        url = None

        if tracker is not None:
            tracker.begin()
        try:
            decoder = descriptor.payload_decoder
            url = decoder.url_for(self)
            data = await descriptor.fetcher.fetch_bytes(url)
            self.points = await decoder.decode(self, data)
            self.loaded = True
        except Exception as e:
            logger.error(f'Failed to load points of node {self.name} from {url}: {e}', exc_info=True)
        finally:
            self.loading = False
            if tracker is not None:
                tracker.end()


@dataclass(eq=False)
class OctreeDescriptor:
    source_url: str
    base_directory: str
    version: Version
    spacing: float
    hierarchy_step_size: int
    bounding_box: Box3
    tight_bounding_box: Box3
    offset: Vec3
    attribute_schema: Union[str, PointAttributes, list, None] = None
    projection: Optional[str] = None
    scale: Optional[float] = None
    root: Optional[OctreeNode] = field(default=None, repr=False)
    nodes: Dict[str, OctreeNode] = field(default_factory=dict, repr=False)
    fetcher: Optional['MetadataFetcher'] = field(default=None, repr=False)
    tracker: Optional['LoadCounter'] = field(default=None, repr=False)
    # set when the fetcher was created for this descriptor and is closed with it
    owns_fetcher: bool = field(default=False, repr=False)
    _payload_decoder: Optional['PayloadDecoder'] = field(default=None, init=False, repr=False)

    @property
    def bounding_sphere(self) -> Sphere:
        return self.bounding_box.bounding_sphere()

    @property
    def tight_bounding_sphere(self) -> Sphere:
        return self.tight_bounding_box.bounding_sphere()

    @property
    def payload_decoder(self) -> 'PayloadDecoder':
        if self._payload_decoder is None:
            raise RuntimeError('payload decoder is not selected yet')
        return self._payload_decoder

    @payload_decoder.setter
    def payload_decoder(self, decoder: 'PayloadDecoder') -> None:
        if self._payload_decoder is not None:
            raise RuntimeError('payload decoder is already set for this octree')
        self._payload_decoder = decoder

    def world_bounding_box(self) -> Box3:
        return self.bounding_box.translate(self.offset)

    def world_tight_bounding_box(self) -> Box3:
        return self.tight_bounding_box.translate(self.offset)

    def register(self, node: OctreeNode) -> None:
        self.nodes[node.name] = node

    async def close(self) -> None:
        """Wait for scheduled node loads, then release the fetcher if this descriptor owns it."""
        pending = [node._load_task for node in self.nodes.values()
                   if node._load_task is not None and not node._load_task.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self.owns_fetcher and self.fetcher is not None:
            close = getattr(self.fetcher, 'close', None)
            if close is not None:
                await close()
            self.owns_fetcher = False
