from dataclasses import dataclass
from typing import Any, List, Optional, Union

from octree_index.application.contracts import MalformedDocumentError
from octree_index.domain.attributes import LAS_LAZ_TAGS, PointAttributes
from octree_index.domain.geometry import Box3
from octree_index.domain.version import Version
from octree_index.infrastructure.decoders import GenericBinaryDecoder, LasLazDecoder, PayloadDecoderVariant


@dataclass(frozen=True)
class DecoderSelection:
    decoder: PayloadDecoderVariant
    attribute_schema: Union[str, PointAttributes]


def select_payload_decoder(
    point_attributes: Union[str, List[Any]],
    *,
    version: Version,
    bounding_box: Box3,
    scale: Optional[float],
) -> DecoderSelection:
    """
    LAS/LAZ tags keep the raw tag as schema: that decoder owns its field layout.
    Anything else is expanded into an interleaved layout for the binary decoder.
    """
    if isinstance(point_attributes, str) and point_attributes in LAS_LAZ_TAGS:
        return DecoderSelection(
            decoder=LasLazDecoder(version=version, tag=point_attributes),
            attribute_schema=point_attributes,
        )

    entries = [point_attributes] if isinstance(point_attributes, str) else point_attributes
    layout = PointAttributes.from_document(entries)
    if version.newer_than('1.3') and scale is None:
        # positions are stored as scaled integers from 1.4 on
        raise MalformedDocumentError(f'version {version} binary payloads require a scale')
    return DecoderSelection(
        decoder=GenericBinaryDecoder(version=version, bounding_box=bounding_box, scale=scale, attributes=layout),
        attribute_schema=layout,
    )
