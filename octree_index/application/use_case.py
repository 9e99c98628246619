from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from octree_index.application.contracts import (
    LoadStatus, MalformedDocumentError, StatusEvent, TransportError
)
from octree_index.application.decoder_selector import select_payload_decoder
from octree_index.application.interfaces import LoadCounter, MetadataFetcher
from octree_index.application.normalizer import normalize_bounds
from octree_index.domain.entities import ROOT_NAME, DiscoveryState, OctreeDescriptor, OctreeNode
from octree_index.domain.geometry import compute_child_box
from octree_index.domain.version import Version
from octree_index.infrastructure.load_tracker import LoadTracker
from octree_index.interfaces.dto import MetadataDocumentDTO
from octree_index.interfaces.mappers import parse_document, resolve_base_directory, to_box

logger = logging.getLogger(__name__)

OnComplete = Callable[[Optional[OctreeDescriptor]], Any]

OCTAL_DIGITS = '01234567'


@dataclass
class OctreeIndexBuilder:
    fetcher: MetadataFetcher
    tracker: LoadCounter = field(default_factory=LoadTracker)
    status: LoadStatus = field(default=LoadStatus.PENDING, init=False)
    events: List[StatusEvent] = field(default_factory=list, init=False)

    async def load(self, url: str, on_complete: Optional[OnComplete] = None) -> Optional[OctreeDescriptor]:
        """
        Fetch the metadata document at `url` and build the octree index.

        Transport failures are reported through `on_complete(None)`.
        A malformed document raises MalformedDocumentError.
        """
        self._push_status(url, LoadStatus.FETCHING)
        self.tracker.begin()
        try:
            text = await self.fetcher.fetch_text(url)
        except TransportError as err:
            self.tracker.end()
            self._push_status(url, LoadStatus.FAILED, {'error_code': err.code.value, 'error': str(err)})
            logger.warning(f'loading file failed: {url} ({err})')
            await _notify(on_complete, None)
            return None
        except MalformedDocumentError as err:
            self.tracker.end()
            self._push_status(url, LoadStatus.FAILED, {'error_code': err.code.value, 'error': str(err)})
            logger.error(f'malformed octree metadata at {url}: {err}')
            raise
        self.tracker.end()

        try:
            descriptor = self._build(url, text)
        except MalformedDocumentError as err:
            self._push_status(url, LoadStatus.FAILED, {'error_code': err.code.value, 'error': str(err)})
            logger.error(f'malformed octree metadata at {url}: {err}')
            raise

        self._push_status(url, LoadStatus.ROOT_LOAD_TRIGGERED)
        descriptor.root.load()

        self._push_status(url, LoadStatus.DONE, {'nodes': len(descriptor.nodes)})
        await _notify(on_complete, descriptor)
        return descriptor

    def _build(self, url: str, text: str) -> OctreeDescriptor:
        self._push_status(url, LoadStatus.PARSING)
        doc = parse_document(text, url=url)
        version = Version.parse(doc.version)

        self._push_status(url, LoadStatus.NORMALIZING)
        world_tight = to_box(doc.tight_bounding_box) if doc.tight_bounding_box is not None else None
        bounds = normalize_bounds(to_box(doc.bounding_box), world_tight)

        descriptor = OctreeDescriptor(
            source_url=url,
            base_directory=resolve_base_directory(url, doc.octree_dir),
            version=version,
            spacing=doc.spacing,
            hierarchy_step_size=doc.hierarchy_step_size,
            bounding_box=bounds.bounding_box,
            tight_bounding_box=bounds.tight_bounding_box,
            offset=bounds.offset,
            attribute_schema=doc.point_attributes,
            projection=doc.projection,
            scale=doc.scale,
            fetcher=self.fetcher,
            tracker=self.tracker,
        )

        self._push_status(url, LoadStatus.TREE_BUILDING, {'version': str(version)})
        self._build_tree(descriptor, doc)

        self._push_status(url, LoadStatus.DECODER_SELECTING)
        selection = select_payload_decoder(
            doc.point_attributes,
            version=version,
            bounding_box=descriptor.bounding_box,
            scale=doc.scale,
        )
        descriptor.payload_decoder = selection.decoder
        descriptor.attribute_schema = selection.attribute_schema
        return descriptor

    def _build_tree(self, descriptor: OctreeDescriptor, doc: MetadataDocumentDTO) -> None:
        version = descriptor.version
        hierarchy = doc.hierarchy

        if version.has_flat_hierarchy():
            if not hierarchy:
                raise MalformedDocumentError(f'version {version} requires a hierarchy list', url=descriptor.source_url)
            if hierarchy[0].name != ROOT_NAME:
                raise MalformedDocumentError(
                    f'first hierarchy entry must be the root {ROOT_NAME!r}, got {hierarchy[0].name!r}',
                    url=descriptor.source_url,
                )

        root_points = 0
        if version.declares_root_point_count() and hierarchy:
            root_points = hierarchy[0].num_points

        root = OctreeNode(
            name=ROOT_NAME,
            descriptor=descriptor,
            bounding_box=descriptor.bounding_box,
            level=0,
            spacing=descriptor.spacing,
            num_points=root_points,
            has_children=True,
            discovery=DiscoveryState.DISCOVERED if version.has_flat_hierarchy() else DiscoveryState.UNDISCOVERED,
        )
        descriptor.root = root
        descriptor.register(root)

        if not version.has_flat_hierarchy():
            if descriptor.hierarchy_step_size == 0:
                raise MalformedDocumentError(f'version {version} requires a positive hierarchyStepSize',
                                             url=descriptor.source_url)
            # deeper nodes come from hierarchy chunks fetched on demand
            return

        nodes: Dict[str, OctreeNode] = {ROOT_NAME: root}
        for entry in hierarchy[1:]:
            name = entry.name
            if name in nodes:
                raise MalformedDocumentError(f'duplicate hierarchy entry {name!r}', url=descriptor.source_url)

            digit = name[-1]
            if digit not in OCTAL_DIGITS:
                raise MalformedDocumentError(f'hierarchy entry {name!r} does not end in an octant digit',
                                             url=descriptor.source_url)

            parent = nodes.get(name[:-1])
            if parent is None:
                raise MalformedDocumentError(f'hierarchy entry {name!r} appears before its parent {name[:-1]!r}',
                                             url=descriptor.source_url)

            index = int(digit)
            level = len(name) - 1
            node = OctreeNode(
                name=name,
                descriptor=descriptor,
                bounding_box=compute_child_box(parent.bounding_box, index),
                level=level,
                spacing=descriptor.spacing / 2 ** level,
                num_points=entry.num_points,
            )
            parent.add_child(index, node)
            nodes[name] = node
            descriptor.register(node)

    def _push_status(self, url: str, status: LoadStatus, details: Optional[Dict[str, Any]] = None) -> None:
        self.status = status
        self.events.append(StatusEvent(url=url, status=status, details=details or {}))
        logger.debug(f'{url}: {status.value}')


async def _notify(on_complete: Optional[OnComplete], descriptor: Optional[OctreeDescriptor]) -> None:
    if on_complete is None:
        return
    result = on_complete(descriptor)
    if inspect.isawaitable(result):
        await result


async def load(
    url: str,
    on_complete: Optional[OnComplete] = None,
    *,
    fetcher: Optional[MetadataFetcher] = None,
    tracker: Optional[LoadCounter] = None,
) -> Optional[OctreeDescriptor]:
    """
    Build an octree index with a one-off builder.

    Without `fetcher` a SchemeFetcher is created and handed to the descriptor:
    call `await descriptor.close()` when done with it. A caller supplied fetcher
    stays the caller's to close.
    """
    owns_fetcher = fetcher is None
    if owns_fetcher:
        from octree_index.port.connectors import SchemeFetcher
        fetcher = SchemeFetcher()
    builder = OctreeIndexBuilder(fetcher=fetcher, tracker=tracker if tracker is not None else LoadTracker())
    try:
        descriptor = await builder.load(url, on_complete)
    except BaseException:
        if owns_fetcher:
            await fetcher.close()
        raise
    if descriptor is None:
        if owns_fetcher:
            await fetcher.close()
        return None
    descriptor.owns_fetcher = owns_fetcher
    return descriptor
