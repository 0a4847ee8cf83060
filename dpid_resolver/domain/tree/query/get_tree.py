from dpid_resolver.domain.shared.query import Query, QueryHandler
from dpid_resolver.domain.tree.model.value import Depth, TreeNode
from dpid_resolver.domain.tree.service.tree import TreeService

DEFAULT_DEPTH = 1


class GetDpidTree(Query):
    dpid: int
    version_index: int | None = None
    concurrency: int | None = None
    depth: Depth | None = None
    # Sub-path below the data bucket root, e.g. ["code", "src"]
    path: list[str] = []


class GetDpidTreeHandler(QueryHandler[GetDpidTree, TreeNode]):
    tree_service: TreeService

    async def run(self, query: GetDpidTree) -> TreeNode:
        if not query.path:
            return await self.tree_service.build_tree_for_dpid(
                query.dpid,
                query.version_index,
                concurrency=query.concurrency,
                max_depth=query.depth if query.depth is not None else DEFAULT_DEPTH,
            )

        # Navigation needs the whole tree
        tree = await self.tree_service.build_tree_for_dpid(
            query.dpid, query.version_index, concurrency=query.concurrency, max_depth="full"
        )
        return self.tree_service.navigate(tree, query.path)


class GetCidTree(Query):
    cid: str
    root_name: str | None = None
    concurrency: int | None = None
    depth: Depth | None = None


class GetCidTreeHandler(QueryHandler[GetCidTree, TreeNode]):
    tree_service: TreeService

    async def run(self, query: GetCidTree) -> TreeNode:
        return await self.tree_service.build_tree(
            query.cid,
            root_name=query.root_name or query.cid,
            concurrency=query.concurrency,
            max_depth=query.depth if query.depth is not None else DEFAULT_DEPTH,
        )
