"""Data bucket tree routes."""

from typing import Annotated, Any

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query

from dpid_resolver.application.api.v2.routes.params import parse_depth, parse_version
from dpid_resolver.domain.tree.model.value import TreeNode
from dpid_resolver.domain.tree.query.get_tree import (
    DEFAULT_DEPTH,
    GetCidTree,
    GetCidTreeHandler,
    GetDpidTree,
    GetDpidTreeHandler,
)

router = APIRouter(
    prefix="/data",
    tags=["data"],
    route_class=DishkaRoute,
)

DEPTH_NOTE = "call with ?depth=full to get full directory structure (may be slow)"


def _render(tree: TreeNode, depth: str | None) -> dict[str, Any]:
    body = tree.model_dump(mode="json", exclude_none=True)
    if depth is None:
        return {"depth": DEFAULT_DEPTH, "note": DEPTH_NOTE, "tree": body}
    return body


@router.get("/dpid/{dpid}")
async def dpid_tree(
    dpid: int,
    handler: FromDishka[GetDpidTreeHandler],
    version: str | None = None,
    concurrency: int | None = None,
    depth: str | None = None,
) -> dict[str, Any]:
    """Directory tree of a dPID's data bucket."""
    tree = await handler.run(
        GetDpidTree(
            dpid=dpid,
            version_index=parse_version(version),
            concurrency=concurrency,
            depth=parse_depth(depth),
        )
    )
    return _render(tree, depth)


@router.get("/dpid/{dpid}/{path:path}")
async def dpid_subtree(
    dpid: int,
    path: str,
    handler: FromDishka[GetDpidTreeHandler],
    version: str | None = None,
    concurrency: int | None = None,
) -> dict[str, Any]:
    """Subtree at a path inside a dPID's data bucket; always walks the full tree."""
    segments = [s for s in path.split("/") if s]
    if segments and segments[0] == "root":
        segments = segments[1:]
    tree = await handler.run(
        GetDpidTree(
            dpid=dpid,
            version_index=parse_version(version),
            concurrency=concurrency,
            path=segments,
        )
    )
    return tree.model_dump(mode="json", exclude_none=True)


@router.get("/cid/{cid}")
async def cid_tree(
    cid: str,
    handler: FromDishka[GetCidTreeHandler],
    root_name: Annotated[str | None, Query(alias="rootName")] = None,
    concurrency: int | None = None,
    depth: str | None = None,
) -> dict[str, Any]:
    """Directory tree of an arbitrary UnixFS CID."""
    tree = await handler.run(
        GetCidTree(
            cid=cid,
            root_name=root_name,
            concurrency=concurrency,
            depth=parse_depth(depth),
        )
    )
    return _render(tree, depth)
