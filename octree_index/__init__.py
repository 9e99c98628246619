"""Index builder for streamed multi-resolution point cloud octrees."""

from .application.contracts import (
    ErrorCode, LoadStatus, MalformedDocumentError, OctreeLoadError, TransportError
)
from .application.hierarchy import HierarchyLoader
from .application.use_case import OctreeIndexBuilder, load
from .domain.entities import DiscoveryState, OctreeDescriptor, OctreeNode
from .domain.geometry import Box3, Sphere, compute_child_box
from .domain.version import Version
from .infrastructure.load_tracker import LoadTracker

__all__ = [
    'Box3',
    'Sphere',
    'compute_child_box',
    'Version',
    'OctreeDescriptor',
    'OctreeNode',
    'DiscoveryState',
    'OctreeIndexBuilder',
    'HierarchyLoader',
    'LoadTracker',
    'load',
    'LoadStatus',
    'ErrorCode',
    'OctreeLoadError',
    'TransportError',
    'MalformedDocumentError',
]
