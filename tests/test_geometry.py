import itertools
import math

import pytest

from octree_index.domain.geometry import Box3, compute_child_box


PARENT = Box3((-4.0, 2.0, 10.0), (4.0, 6.0, 18.0))


def test_children_tile_parent():
    children = [compute_child_box(PARENT, i) for i in range(8)]

    assert sum(c.volume() for c in children) == pytest.approx(PARENT.volume())
    for child in children:
        assert PARENT.contains_box(child)
        assert child.size() == pytest.approx(tuple(s / 2 for s in PARENT.size()))

    # distinct octants do not overlap
    for a, b in itertools.combinations(children, 2):
        overlap = [min(a.max[i], b.max[i]) - max(a.min[i], b.min[i]) for i in range(3)]
        assert min(overlap) <= 0


def test_bit_to_axis_assignment():
    mid = PARENT.center()

    z_upper = compute_child_box(PARENT, 0b001)
    assert z_upper.min == (PARENT.min[0], PARENT.min[1], mid[2])

    y_upper = compute_child_box(PARENT, 0b010)
    assert y_upper.min == (PARENT.min[0], mid[1], PARENT.min[2])

    x_upper = compute_child_box(PARENT, 0b100)
    assert x_upper.min == (mid[0], PARENT.min[1], PARENT.min[2])

    assert compute_child_box(PARENT, 0) == Box3(PARENT.min, mid)
    assert compute_child_box(PARENT, 7) == Box3(mid, PARENT.max)


@pytest.mark.parametrize('index', [-1, 8, 42])
def test_child_index_out_of_range(index):
    with pytest.raises(ValueError):
        compute_child_box(PARENT, index)


def test_bounding_sphere_encloses_corners():
    sphere = PARENT.bounding_sphere()

    assert sphere.center == (0.0, 4.0, 14.0)
    assert sphere.radius == pytest.approx(math.sqrt(8 ** 2 + 4 ** 2 + 8 ** 2) / 2)
