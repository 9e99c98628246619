import pytest

from octree_index.application.contracts import ErrorCode, MalformedDocumentError
from octree_index.domain.version import Version


def test_numeric_not_lexicographic():
    assert Version.parse('1.10').newer_than('1.9')
    assert not Version.parse('1.10').up_to('1.9')


@pytest.mark.parametrize('raw, threshold, expected', [
    ('1.4', '1.4', True),
    ('1.3', '1.4', True),
    ('1.5', '1.4', False),
    ('1.5', '1.5', True),
    ('2', '1.5', False),
    ('1.0', '1.1', True),
])
def test_up_to(raw, threshold, expected):
    assert Version.parse(raw).up_to(threshold) is expected


def test_branch_thresholds():
    assert Version.parse('1.4').has_flat_hierarchy()
    assert not Version.parse('1.5').has_flat_hierarchy()
    assert Version.parse('1.5').declares_root_point_count()
    assert not Version.parse('1.6').declares_root_point_count()


@pytest.mark.parametrize('raw', ['', 'one.two', '1.x', '1.2.3', None])
def test_unparseable_version(raw):
    with pytest.raises(MalformedDocumentError) as exc:
        Version.parse(raw)
    assert exc.value.code is ErrorCode.MALFORMED_DOCUMENT


def test_str():
    assert str(Version.parse('1.7')) == '1.7'
    assert str(Version.parse(2)) == '2.0'
