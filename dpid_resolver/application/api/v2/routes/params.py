"""Parsing of loosely typed path and query parameters shared by routes."""

from dpid_resolver.domain.identifier.service.identifier import parse_version_string
from dpid_resolver.domain.tree.model.value import Depth


def parse_depth(depth: str | None) -> Depth | None:
    """``full`` or a non-negative integer; anything else counts as unset."""
    if depth is None:
        return None
    if depth == "full":
        return "full"
    if depth.isdigit():
        return int(depth)
    return None


def parse_version(version: str | None) -> int | None:
    return None if version is None else parse_version_string(version)
