from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


Vec3 = Tuple[float, float, float]


def _add(a: Vec3, b: Vec3) -> Vec3:
    return a[0] + b[0], a[1] + b[1], a[2] + b[2]


def _sub(a: Vec3, b: Vec3) -> Vec3:
    return a[0] - b[0], a[1] - b[1], a[2] - b[2]


@dataclass(frozen=True)
class Sphere:
    center: Vec3
    radius: float


@dataclass(frozen=True)
class Box3:
    min: Vec3
    max: Vec3

    @classmethod
    def from_bounds(cls, lx: float, ly: float, lz: float, ux: float, uy: float, uz: float) -> 'Box3':
        return cls((float(lx), float(ly), float(lz)), (float(ux), float(uy), float(uz)))

    def size(self) -> Vec3:
        return _sub(self.max, self.min)

    def center(self) -> Vec3:
        return (
            (self.min[0] + self.max[0]) / 2,
            (self.min[1] + self.max[1]) / 2,
            (self.min[2] + self.max[2]) / 2,
        )

    def translate(self, delta: Vec3) -> 'Box3':
        return Box3(_add(self.min, delta), _add(self.max, delta))

    def contains_box(self, other: 'Box3') -> bool:
        return all(self.min[i] <= other.min[i] and other.max[i] <= self.max[i] for i in range(3))

    def volume(self) -> float:
        sx, sy, sz = self.size()
        return sx * sy * sz

    def bounding_sphere(self) -> Sphere:
        """Sphere through the box corners: centered in the box, radius is half the diagonal."""
        sx, sy, sz = self.size()
        return Sphere(center=self.center(), radius=math.sqrt(sx * sx + sy * sy + sz * sz) / 2)


def compute_child_box(parent: Box3, index: int) -> Box3:
    """
    Box of octant `index` (0..7) of `parent`.

    Bit 0 selects the upper half along z, bit 1 along y, bit 2 along x.
    The digit appended to a node name is this index.
    """
    if not 0 <= index <= 7:
        raise ValueError(f'child index must be in 0..7, got {index}')

    lo = list(parent.min)
    hi = list(parent.max)
    size = parent.size()

    for bit, axis in ((0b001, 2), (0b010, 1), (0b100, 0)):
        half = size[axis] / 2
        if index & bit:
            lo[axis] += half
        else:
            hi[axis] -= half

    return Box3((lo[0], lo[1], lo[2]), (hi[0], hi[1], hi[2]))
