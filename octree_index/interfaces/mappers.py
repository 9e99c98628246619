import json
from typing import Any, Optional

from pydantic import ValidationError

from octree_index.application.contracts import MalformedDocumentError
from octree_index.domain.geometry import Box3
from octree_index.interfaces.dto import BoundingBoxDTO, MetadataDocumentDTO


def parse_document(text: str, *, url: Optional[str] = None) -> MetadataDocumentDTO:
    try:
        raw: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(f'metadata is not valid JSON: {e}', url=url) from e

    if not isinstance(raw, dict):
        raise MalformedDocumentError('metadata must be a JSON object', url=url)

    try:
        return MetadataDocumentDTO.model_validate(raw)
    except ValidationError as e:
        raise MalformedDocumentError(f'metadata does not match the octree format: {e}', url=url) from e


def to_box(dto: BoundingBoxDTO) -> Box3:
    return Box3.from_bounds(dto.lx, dto.ly, dto.lz, dto.ux, dto.uy, dto.uz)


def resolve_base_directory(source_url: str, octree_dir: str) -> str:
    # dirs starting with http are absolute, everything else hangs off the document url
    if octree_dir.startswith('http'):
        return octree_dir
    return f'{source_url}/../{octree_dir}'
