import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

from octree_index.application.contracts import MalformedDocumentError
from octree_index.application.use_case import OctreeIndexBuilder
from octree_index.domain.attributes import PointAttributes
from octree_index.domain.entities import OctreeDescriptor
from octree_index.domain.geometry import Box3
from octree_index.env_vars import settings
from octree_index.port.connectors import Config, HttpConfig, SchemeFetcher

logger = logging.getLogger(__name__)


def _box(box: Box3) -> Dict[str, Any]:
    return {'min': list(box.min), 'max': list(box.max)}


def summarize(descriptor: OctreeDescriptor, *, with_nodes: bool = False) -> Dict[str, Any]:
    schema = descriptor.attribute_schema
    out: Dict[str, Any] = {
        'source_url': descriptor.source_url,
        'base_directory': descriptor.base_directory,
        'version': str(descriptor.version),
        'spacing': descriptor.spacing,
        'hierarchy_step_size': descriptor.hierarchy_step_size,
        'projection': descriptor.projection,
        'offset': list(descriptor.offset),
        'bounding_box': _box(descriptor.bounding_box),
        'tight_bounding_box': _box(descriptor.tight_bounding_box),
        'decoder': descriptor.payload_decoder.kind,
        'point_attributes': schema.names if isinstance(schema, PointAttributes) else schema,
        'root_points': descriptor.root.num_points,
        'node_count': len(descriptor.nodes),
    }
    if with_nodes:
        out['nodes'] = {
            name: {'level': node.level, 'points': node.num_points, 'spacing': node.spacing}
            for name, node in descriptor.nodes.items()
        }
    return out


async def _run(url: str, with_nodes: bool) -> Optional[Dict[str, Any]]:
    fetcher = SchemeFetcher(Config(http=HttpConfig(OCTREE_HTTP_TIMEOUT=settings.http_timeout)))
    try:
        descriptor = await OctreeIndexBuilder(fetcher=fetcher).load(url)
        if descriptor is None:
            return None
        summary = summarize(descriptor, with_nodes=with_nodes)
        task = descriptor.root.load()
        if task is not None:
            await task
        summary['root_loaded'] = descriptor.root.loaded
        return summary
    finally:
        await fetcher.close()


def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog='octree-index', description='Load an octree metadata document and print its index.')
    p.add_argument('url')
    p.add_argument('--nodes', action='store_true', help='include every indexed node')
    p.add_argument('--log-level', default=settings.log_level)

    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        summary = asyncio.run(_run(args.url, args.nodes))
    except MalformedDocumentError as e:
        logger.error(f'Malformed metadata: {e}')
        return 2

    if summary is None:
        return 1

    print(json.dumps(summary, indent=2, ensure_ascii=False))
    return 0


if __name__ == '__main__':
    sys.exit(main())
