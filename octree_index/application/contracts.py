from enum import Enum
from time import time
from typing import Any

from pydantic import BaseModel, Field


class LoadStatus(Enum):
    PENDING = 'PENDING'
    FETCHING = 'FETCHING'
    PARSING = 'PARSING'
    NORMALIZING = 'NORMALIZING'
    TREE_BUILDING = 'TREE_BUILDING'
    DECODER_SELECTING = 'DECODER_SELECTING'
    ROOT_LOAD_TRIGGERED = 'ROOT_LOAD_TRIGGERED'
    DONE = 'DONE'
    FAILED = 'FAILED'


class ErrorCode(Enum):
    TRANSPORT_ERROR = 'TRANSPORT_ERROR'
    MALFORMED_DOCUMENT = 'MALFORMED_DOCUMENT'


class OctreeLoadError(RuntimeError):
    code: ErrorCode

    def __init__(self, message: str, *, url: str | None = None):
        super().__init__(message)
        self.url = url


class TransportError(OctreeLoadError):
    """Metadata or payload could not be fetched. Transient, never retried here."""

    code = ErrorCode.TRANSPORT_ERROR


class MalformedDocumentError(OctreeLoadError, ValueError):
    """The document does not match the format this loader understands."""

    code = ErrorCode.MALFORMED_DOCUMENT


class StatusEvent(BaseModel):
    url: str = Field(min_length=1)
    status: LoadStatus
    timestamp: float = Field(default_factory=time)
    details: dict[str, Any] = Field(default_factory=dict)
