"""Concurrent UnixFS folder tree builder.

A fixed pool of worker tasks drains a queue of pending children. Workers
enqueue the children of each directory they discover, and the build is done
when the queue is joined. Every child gets a slot in its parent at enqueue
time so the tree keeps link order regardless of fetch completion order.
"""

import asyncio
import logging
from dataclasses import dataclass

from dpid_resolver.domain.cache.model.value import CacheKind
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.shared.error import NotFoundError
from dpid_resolver.domain.shared.model.manifest import data_bucket_cid
from dpid_resolver.domain.shared.port.manifest_reader import ManifestReader
from dpid_resolver.domain.shared.service import Service
from dpid_resolver.domain.tree.model.value import (
    DagLink,
    Depth,
    TreeNode,
    depth_key,
    is_unixfs_dir,
    node_links,
)
from dpid_resolver.domain.tree.port.dag_fetcher import DagFetcher

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8
MAX_CONCURRENCY = 16


def clamp_concurrency(concurrency: int | None) -> int:
    if concurrency is None:
        return DEFAULT_CONCURRENCY
    return max(1, min(concurrency, MAX_CONCURRENCY))


@dataclass
class _Pending:
    slots: list[TreeNode | None]
    index: int
    link: DagLink
    path: str
    depth: int


class TreeService(Service):
    dag_fetcher: DagFetcher
    manifest_reader: ManifestReader
    dpid_service: DpidService
    cache: ResolverCache

    async def build_tree(
        self,
        root_cid: str,
        root_name: str = "root",
        concurrency: int | None = None,
        max_depth: Depth = 1,
    ) -> TreeNode:
        key = self.cache.key(CacheKind.IPFS_TREE, f"{root_name}-{depth_key(max_depth)}-{root_cid}")
        cached = await self.cache.read(key, TreeNode)
        if cached is not None:
            self.cache.bump_async(key, self.cache.ttl.anchored)
            return cached

        root_node = await self.dag_fetcher.get_node(root_cid)
        if not is_unixfs_dir(root_node):
            tree = TreeNode(name=root_name, path=root_name, cid=root_cid, type="file")
        else:
            tree = await self._walk(root_cid, root_name, root_node, clamp_concurrency(concurrency), max_depth)

        # Content-addressed, so the tree under a CID never changes
        self.cache.write_async(key, tree, self.cache.ttl.anchored)
        return tree

    async def build_tree_for_dpid(
        self,
        dpid: int,
        version_index: int | None = None,
        concurrency: int | None = None,
        max_depth: Depth = 1,
    ) -> TreeNode:
        history = await self.dpid_service.resolve_dpid(dpid, version_index)
        manifest = await self.manifest_reader.get_manifest(history.latest_manifest_cid)
        return await self.build_tree(
            data_bucket_cid(manifest),
            root_name="root",
            concurrency=concurrency,
            max_depth=max_depth,
        )

    async def _walk(
        self,
        root_cid: str,
        root_name: str,
        root_node: dict,
        concurrency: int,
        max_depth: Depth,
    ) -> TreeNode:
        queue: asyncio.Queue[_Pending] = asyncio.Queue()
        slots_of: dict[int, list[TreeNode | None]] = {}

        def enqueue_children(node: dict, path: str, depth: int) -> list[TreeNode | None]:
            links = node_links(node) if max_depth == "full" or depth < max_depth else []
            slots: list[TreeNode | None] = [None] * len(links)
            for i, link in enumerate(links):
                queue.put_nowait(_Pending(slots, i, link, f"{path}/{link.name}", depth + 1))
            return slots

        async def worker() -> None:
            while True:
                item = await queue.get()
                try:
                    child = await self.dag_fetcher.get_node(item.link.cid)
                    if is_unixfs_dir(child):
                        entry = TreeNode(
                            name=item.link.name, path=item.path, cid=item.link.cid, type="directory"
                        )
                        slots_of[id(entry)] = enqueue_children(child, item.path, item.depth)
                    else:
                        entry = TreeNode(
                            name=item.link.name,
                            path=item.path,
                            cid=item.link.cid,
                            type="file",
                            size=item.link.size,
                        )
                    item.slots[item.index] = entry
                except Exception as e:
                    logger.warning("Failed to fetch DAG node %s at %s, skipping: %s", item.link.cid, item.path, e)
                finally:
                    queue.task_done()

        root = TreeNode(name=root_name, path=root_name, cid=root_cid, type="directory")
        slots_of[id(root)] = enqueue_children(root_node, root_name, 0)

        workers = [asyncio.create_task(worker()) for _ in range(concurrency)]
        try:
            await queue.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        return _assemble(root, slots_of)

    @staticmethod
    def navigate(tree: TreeNode, parts: list[str]) -> TreeNode:
        """Walk ``parts`` down from ``tree``.

        Raises:
            NotFoundError: if a segment is missing or crosses a file.
        """
        current = tree
        for part in parts:
            if current.type != "directory" or not current.children:
                raise NotFoundError(f"Path not found: {'/'.join(parts)}")
            match = next((c for c in current.children if c.name == part), None)
            if match is None:
                raise NotFoundError(f"Path not found: {'/'.join(parts)}")
            current = match
        return current


def _assemble(node: TreeNode, slots_of: dict[int, list[TreeNode | None]]) -> TreeNode:
    slots = slots_of.get(id(node))
    if slots is None:
        return node
    node.children = [_assemble(child, slots_of) for child in slots if child is not None]
    return node
