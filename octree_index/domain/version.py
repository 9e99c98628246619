from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Tuple, Union

from octree_index.application.contracts import MalformedDocumentError


_VERSION_RE = re.compile(r'^\s*(\d+)(?:\.(\d+))?\s*$')

# Hierarchy is a flat list in the metadata document up to this version.
LEGACY_HIERARCHY_MAX = '1.4'
# Root point count is taken from hierarchy[0] up to this version.
ROOT_POINT_COUNT_MAX = '1.5'


@total_ordering
@dataclass(frozen=True)
class Version:
    major: int
    minor: int

    @classmethod
    def parse(cls, raw: Union[str, int, float, 'Version']) -> 'Version':
        if isinstance(raw, Version):
            return raw
        match = _VERSION_RE.match(str(raw))
        if not match:
            raise MalformedDocumentError(f'unparseable version: {raw!r}')
        return cls(int(match.group(1)), int(match.group(2) or 0))

    def _key(self) -> Tuple[int, int]:
        return self.major, self.minor

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def up_to(self, threshold: Union[str, 'Version']) -> bool:
        return self <= Version.parse(threshold)

    def newer_than(self, threshold: Union[str, 'Version']) -> bool:
        return self > Version.parse(threshold)

    def equal_or_higher(self, threshold: Union[str, 'Version']) -> bool:
        return self >= Version.parse(threshold)

    def has_flat_hierarchy(self) -> bool:
        return self.up_to(LEGACY_HIERARCHY_MAX)

    def declares_root_point_count(self) -> bool:
        return self.up_to(ROOT_POINT_COUNT_MAX)

    def __str__(self) -> str:
        return f'{self.major}.{self.minor}'
