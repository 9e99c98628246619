from dataclasses import dataclass
from typing import Optional

from octree_index.domain.geometry import Box3, Vec3


@dataclass(frozen=True)
class NormalizedBounds:
    bounding_box: Box3
    tight_bounding_box: Box3
    offset: Vec3


def normalize_bounds(world_box: Box3, world_tight_box: Optional[Box3] = None) -> NormalizedBounds:
    """
    Re-express both boxes relative to the world min corner.

    Add `offset` back to any normalized coordinate to recover world space.
    """
    offset = world_box.min
    tight = world_tight_box if world_tight_box is not None else world_box
    shift = (-offset[0], -offset[1], -offset[2])
    return NormalizedBounds(
        bounding_box=world_box.translate(shift),
        tight_bounding_box=tight.translate(shift),
        offset=offset,
    )
