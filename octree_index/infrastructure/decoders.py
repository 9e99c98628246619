from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Union

import laspy
import numpy as np

from octree_index.application.contracts import MalformedDocumentError
from octree_index.domain.attributes import PointAttributes
from octree_index.domain.geometry import Box3
from octree_index.domain.version import Version

if TYPE_CHECKING:
    from octree_index.domain.entities import OctreeNode


logger = logging.getLogger(__name__)

POSITION = 'POSITION_CARTESIAN'


@dataclass(frozen=True)
class GenericBinaryDecoder:
    version: Version
    bounding_box: Box3
    scale: Optional[float]
    attributes: PointAttributes

    kind = 'binary'

    def url_for(self, node: OctreeNode) -> str:
        url = node.url
        if self.version.equal_or_higher('1.4'):
            url += '.bin'
        return url

    async def decode(self, node: OctreeNode, data: bytes) -> Dict[str, np.ndarray]:
        return await asyncio.to_thread(self._decode, node, data)

    def _decode(self, node: OctreeNode, data: bytes) -> Dict[str, np.ndarray]:
        scaled_positions = self.version.newer_than('1.3')
        dtype = self.attributes.to_dtype(float_positions=not scaled_positions)
        if dtype.itemsize == 0:
            raise MalformedDocumentError('point attribute layout is empty')
        if len(data) % dtype.itemsize:
            raise MalformedDocumentError(
                f'payload of {node.name} is {len(data)} bytes, not a multiple of {dtype.itemsize}'
            )

        count = len(data) // dtype.itemsize
        if self.version.up_to('1.5'):
            node.num_points = count

        records = np.frombuffer(data, dtype=dtype, count=count)
        out: Dict[str, np.ndarray] = {}
        for name in self.attributes.names:
            values = records[name]
            if name == POSITION:
                values = self._positions(node, values, scaled_positions)
            out[name] = np.array(values)
        return out

    def _positions(self, node: OctreeNode, raw: np.ndarray, scaled: bool) -> np.ndarray:
        if scaled:
            if self.scale is None:
                raise MalformedDocumentError('scaled positions require a declared scale')
            # integer offsets from the node's min corner
            return raw.astype(np.float64) * self.scale + np.asarray(node.bounding_box.min)
        # float positions are stored in world space
        return raw.astype(np.float64) - np.asarray(node.descriptor.offset)


@dataclass(frozen=True)
class LasLazDecoder:
    version: Version
    tag: str

    kind = 'las'

    def url_for(self, node: OctreeNode) -> str:
        return f'{node.url}.{self.tag.lower()}'

    async def decode(self, node: OctreeNode, data: bytes) -> Dict[str, np.ndarray]:
        return await asyncio.to_thread(self._decode, node, data)

    def _decode(self, node: OctreeNode, data: bytes) -> Dict[str, np.ndarray]:
        las = laspy.read(io.BytesIO(data))
        node.num_points = int(las.header.point_count)

        xyz = np.vstack((np.asarray(las.x), np.asarray(las.y), np.asarray(las.z))).T
        out: Dict[str, np.ndarray] = {
            POSITION: xyz - np.asarray(node.descriptor.offset),
        }

        dims = set(las.point_format.dimension_names)
        if 'intensity' in dims:
            out['INTENSITY'] = np.asarray(las.intensity)
        if 'classification' in dims:
            out['CLASSIFICATION'] = np.asarray(las.classification)
        if 'return_number' in dims:
            out['RETURN_NUMBER'] = np.asarray(las.return_number)
        if 'number_of_returns' in dims:
            out['NUMBER_OF_RETURNS'] = np.asarray(las.number_of_returns)
        if 'point_source_id' in dims:
            out['SOURCE_ID'] = np.asarray(las.point_source_id)
        if 'gps_time' in dims:
            out['GPS_TIME'] = np.asarray(las.gps_time)
        if {'red', 'green', 'blue'}.issubset(dims):
            out['RGB_PACKED'] = np.vstack((las.red, las.green, las.blue)).T
        return out


PayloadDecoderVariant = Union[GenericBinaryDecoder, LasLazDecoder]
