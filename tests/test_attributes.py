import numpy as np
import pytest

from octree_index.application.contracts import MalformedDocumentError
from octree_index.application.decoder_selector import select_payload_decoder
from octree_index.domain.attributes import REGISTRY, PointAttributes
from octree_index.domain.geometry import Box3
from octree_index.domain.version import Version
from octree_index.infrastructure.decoders import GenericBinaryDecoder, LasLazDecoder


BOX = Box3((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))


def test_layout_from_names():
    layout = PointAttributes.from_document(['POSITION_CARTESIAN', 'COLOR_PACKED', 'NORMAL_OCT16'])

    assert layout.names == ['POSITION_CARTESIAN', 'COLOR_PACKED', 'NORMAL_OCT16']
    assert layout.byte_size == 12 + 4 + 2
    assert 'COLOR_PACKED' in layout
    assert layout.get('NORMAL_OCT16') is REGISTRY['NORMAL_OCT16']
    assert layout.to_dtype().itemsize == layout.byte_size


def test_layout_from_descriptors():
    layout = PointAttributes.from_document([
        {'name': 'POSITION_CARTESIAN', 'type': 'int32', 'elements': 3, 'elementSize': 4, 'size': 12},
        {'name': 'rgba', 'type': 'uint8', 'numElements': 4, 'description': 'packed colour'},
        {'name': 'gps-time', 'type': 'double', 'elements': 1},
    ])

    assert [(a.name, a.type, a.num_elements, a.byte_size) for a in layout.attributes] == [
        ('POSITION_CARTESIAN', 'int32', 3, 12),
        ('rgba', 'uint8', 4, 4),
        ('gps-time', 'double', 1, 8),
    ]
    assert layout.get('rgba').description == 'packed colour'
    assert layout.to_dtype()['gps-time'] == np.dtype('<f8')


@pytest.mark.parametrize('entries', [
    ['UNKNOWN'],
    [{'type': 'uint8', 'elements': 1}],
    [{'name': 'custom', 'elements': 1}],
    [{'name': 'custom', 'type': 'complex', 'elements': 1}],
    [42],
])
def test_bad_layouts(entries):
    with pytest.raises(MalformedDocumentError):
        PointAttributes.from_document(entries)


@pytest.mark.parametrize('tag', ['LAS', 'LAZ'])
def test_las_tags_select_las_decoder(tag):
    selection = select_payload_decoder(tag, version=Version.parse('1.7'), bounding_box=BOX, scale=0.01)

    assert isinstance(selection.decoder, LasLazDecoder)
    assert selection.attribute_schema == tag


def test_attribute_list_selects_binary_decoder():
    selection = select_payload_decoder(
        [{'name': 'POSITION_CARTESIAN'}], version=Version.parse('1.7'), bounding_box=BOX, scale=0.01
    )

    assert isinstance(selection.decoder, GenericBinaryDecoder)
    assert selection.decoder.attributes is selection.attribute_schema
    assert selection.attribute_schema.names == ['POSITION_CARTESIAN']


def test_binary_decoder_needs_scale_after_1_3():
    with pytest.raises(MalformedDocumentError):
        select_payload_decoder(['POSITION_CARTESIAN'], version=Version.parse('1.4'), bounding_box=BOX, scale=None)

    selection = select_payload_decoder(['POSITION_CARTESIAN'], version=Version.parse('1.3'), bounding_box=BOX, scale=None)
    assert selection.decoder.scale is None


def test_las_decoder_ignores_missing_scale():
    selection = select_payload_decoder('LAZ', version=Version.parse('1.7'), bounding_box=BOX, scale=None)

    assert isinstance(selection.decoder, LasLazDecoder)
