from typing import Any, Literal, Union

from pydantic import BaseModel

# UnixFS Data field [0x08, 0x01] (Type = Directory), base64 encoded
UNIXFS_DIR_MARKER = "CAE"

Depth = Union[int, Literal["full"]]


def is_unixfs_dir(node: Any) -> bool:
    """A DAG-JSON node is a directory iff its Data bytes carry the marker."""
    try:
        return node["Data"]["/"]["bytes"] == UNIXFS_DIR_MARKER
    except (KeyError, TypeError):
        return False


def depth_key(depth: Depth) -> str:
    return "full" if depth == "full" else f"d{depth}"


class TreeNode(BaseModel):
    name: str
    path: str
    cid: str
    type: Literal["file", "directory"]
    size: int | None = None
    children: list["TreeNode"] | None = None


class DagLink(BaseModel):
    name: str
    cid: str
    size: int | None = None


def node_links(node: Any) -> list[DagLink]:
    """Links of a DAG-JSON UnixFS node; links without a usable CID are skipped."""
    if not isinstance(node, dict):
        return []
    links = []
    for link in node.get("Links") or []:
        target = link.get("Hash")
        if isinstance(target, dict):
            target = target.get("/")
        if not isinstance(target, str) or not target:
            continue
        links.append(DagLink(name=link.get("Name", ""), cid=target, size=link.get("Tsize")))
    return links
