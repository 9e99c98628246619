from typing import TYPE_CHECKING, Any, Dict, Protocol

if TYPE_CHECKING:
    from octree_index.domain.entities import OctreeNode


class MetadataFetcher(Protocol):
    async def fetch_text(self, url: str) -> str:
        """Returns the document at `url` as text. Raises TransportError."""
        ...

    async def fetch_bytes(self, url: str) -> bytes:
        """Returns the payload at `url`. Raises TransportError."""
        ...


class PayloadDecoder(Protocol):
    kind: str

    def url_for(self, node: 'OctreeNode') -> str:
        ...

    async def decode(self, node: 'OctreeNode', data: bytes) -> Dict[str, Any]:
        ...


class LoadCounter(Protocol):
    @property
    def in_flight(self) -> int:
        ...

    def begin(self) -> None:
        ...

    def end(self) -> None:
        ...
