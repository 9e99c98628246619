from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BoundingBoxDTO(BaseModel):
    lx: float
    ly: float
    lz: float
    ux: float
    uy: float
    uz: float

    @model_validator(mode='after')
    def _check_order(self) -> 'BoundingBoxDTO':
        if self.lx > self.ux or self.ly > self.uy or self.lz > self.uz:
            raise ValueError('bounding box lower corner exceeds upper corner')
        return self


class HierarchyEntryDTO(BaseModel):
    name: str = Field(min_length=1)
    num_points: int = Field(ge=0)

    @model_validator(mode='before')
    @classmethod
    def _from_pair(cls, raw: Any) -> Any:
        # documents store entries as [name, pointCount]
        if isinstance(raw, (list, tuple)):
            if len(raw) != 2:
                raise ValueError(f'hierarchy entry must be [name, pointCount], got {raw!r}')
            return {'name': raw[0], 'num_points': raw[1]}
        return raw


class MetadataDocumentDTO(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    version: str
    octree_dir: str = Field(alias='octreeDir')
    spacing: float = Field(gt=0)
    hierarchy_step_size: int = Field(alias='hierarchyStepSize', ge=0)
    point_attributes: Union[str, list[Union[str, dict[str, Any]]]] = Field(alias='pointAttributes')
    bounding_box: BoundingBoxDTO = Field(alias='boundingBox')
    tight_bounding_box: Optional[BoundingBoxDTO] = Field(alias='tightBoundingBox', default=None)
    projection: Optional[str] = None
    scale: Optional[float] = None
    hierarchy: list[HierarchyEntryDTO] = Field(default_factory=list)

    @field_validator('version', mode='before')
    @classmethod
    def _version_is_text(cls, value: Any) -> Any:
        # a JSON number loses digits ("1.10" -> 1.1), only the quoted form is trusted
        if not isinstance(value, str):
            raise ValueError(f'version must be a string, got {type(value).__name__}')
        return value

    @model_validator(mode='after')
    def _tight_inside_full(self) -> 'MetadataDocumentDTO':
        tight, full = self.tight_bounding_box, self.bounding_box
        if tight is None:
            return self
        if (tight.lx < full.lx or tight.ly < full.ly or tight.lz < full.lz
                or tight.ux > full.ux or tight.uy > full.uy or tight.uz > full.uz):
            raise ValueError('tightBoundingBox must lie inside boundingBox')
        return self
