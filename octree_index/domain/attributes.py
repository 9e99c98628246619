from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np

from octree_index.application.contracts import MalformedDocumentError


LAS_LAZ_TAGS = frozenset({'LAS', 'LAZ'})

NUMPY_TYPES: Dict[str, str] = {
    'int8': '<i1',
    'uint8': '<u1',
    'int16': '<i2',
    'uint16': '<u2',
    'int32': '<i4',
    'uint32': '<u4',
    'int64': '<i8',
    'uint64': '<u8',
    'float': '<f4',
    'double': '<f8',
}


@dataclass(frozen=True)
class PointAttribute:
    name: str
    type: str
    num_elements: int
    byte_size: int
    description: str = ''

    @property
    def element_size(self) -> int:
        return self.byte_size // self.num_elements


REGISTRY: Dict[str, PointAttribute] = {
    attr.name: attr
    for attr in (
        PointAttribute('POSITION_CARTESIAN', 'int32', 3, 12),
        PointAttribute('COLOR_PACKED', 'uint8', 4, 4),
        PointAttribute('RGBA_PACKED', 'uint8', 4, 4),
        PointAttribute('RGB_PACKED', 'uint8', 3, 3),
        PointAttribute('NORMAL_FLOATS', 'float', 3, 12),
        PointAttribute('FILLER_1B', 'uint8', 1, 1),
        PointAttribute('INTENSITY', 'uint16', 1, 2),
        PointAttribute('CLASSIFICATION', 'uint8', 1, 1),
        PointAttribute('NORMAL_SPHEREMAPPED', 'uint8', 2, 2),
        PointAttribute('NORMAL_OCT16', 'uint8', 2, 2),
        PointAttribute('NORMAL', 'float', 3, 12),
        PointAttribute('RETURN_NUMBER', 'uint8', 1, 1),
        PointAttribute('NUMBER_OF_RETURNS', 'uint8', 1, 1),
        PointAttribute('SOURCE_ID', 'uint16', 1, 2),
        PointAttribute('INDICES', 'uint32', 1, 4),
        PointAttribute('SPACING', 'float', 1, 4),
        PointAttribute('GPS_TIME', 'double', 1, 8),
    )
}


def _from_mapping(entry: Mapping[str, Any]) -> PointAttribute:
    name = entry.get('name')
    if not name:
        raise MalformedDocumentError(f'point attribute without a name: {dict(entry)!r}')

    known = REGISTRY.get(name)
    type_ = entry.get('type', known.type if known else None)
    elements = entry.get('elements', entry.get('numElements', known.num_elements if known else None))

    if type_ is None or elements is None:
        raise MalformedDocumentError(f'point attribute {name!r} needs type and elements')
    if type_ not in NUMPY_TYPES:
        raise MalformedDocumentError(f'point attribute {name!r} has unknown type {type_!r}')

    elements = int(elements)
    if 'size' in entry:
        byte_size = int(entry['size'])
    elif 'elementSize' in entry:
        byte_size = int(entry['elementSize']) * elements
    elif known:
        byte_size = known.byte_size
    else:
        byte_size = np.dtype(NUMPY_TYPES[type_]).itemsize * elements

    return PointAttribute(name, type_, elements, byte_size, entry.get('description', ''))


@dataclass
class PointAttributes:
    """Ordered, interleaved field layout of one point record."""

    attributes: List[PointAttribute] = field(default_factory=list)

    @classmethod
    def from_document(cls, raw: Iterable[Union[str, Mapping[str, Any]]]) -> 'PointAttributes':
        layout = cls()
        for entry in raw:
            if isinstance(entry, str):
                attr = REGISTRY.get(entry)
                if attr is None:
                    raise MalformedDocumentError(f'unknown point attribute {entry!r}')
                layout.add(attr)
            elif isinstance(entry, Mapping):
                layout.add(_from_mapping(entry))
            else:
                raise MalformedDocumentError(f'unsupported point attribute entry {entry!r}')
        return layout

    def add(self, attribute: PointAttribute) -> None:
        self.attributes.append(attribute)

    @property
    def byte_size(self) -> int:
        return sum(a.byte_size for a in self.attributes)

    @property
    def names(self) -> List[str]:
        return [a.name for a in self.attributes]

    def get(self, name: str) -> Optional[PointAttribute]:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None

    def __contains__(self, name: object) -> bool:
        return any(a.name == name for a in self.attributes)

    def __len__(self) -> int:
        return len(self.attributes)

    def to_dtype(self, *, float_positions: bool = False) -> np.dtype:
        """numpy record dtype; older formats store positions as float32."""
        fields = []
        for attr in self.attributes:
            type_ = attr.type
            if attr.name == 'POSITION_CARTESIAN':
                type_ = 'float' if float_positions else 'uint32'
            base = np.dtype(NUMPY_TYPES[type_])
            if base.itemsize * attr.num_elements != attr.byte_size:
                # opaque or padded field, keep raw bytes
                fields.append((attr.name, f'V{attr.byte_size}'))
                continue
            shape = (attr.num_elements,) if attr.num_elements > 1 else ()
            fields.append((attr.name, base, shape) if shape else (attr.name, base))
        return np.dtype(fields)
