"""Tells the identifier shapes apart and parses dPID paths.

Plain dPIDs are decimal integers. Everything else must parse as a stream or
commit ID. Version strings are either bare zero-based indexes (``0``, ``2``)
or ``v``-prefixed one-based versions (``v1`` is index 0).
"""

import re

from dpid_resolver.domain.history.model.streamid import CommitId, parse_stream_ref
from dpid_resolver.domain.identifier.model.value import (
    DpidPath,
    IdentifierKind,
    ParsedIdentifier,
)
from dpid_resolver.domain.shared.error import InvalidIdentifier

_DPID = re.compile(r"[0-9]+")
_VERSION = re.compile(r"v?[0-9]+")


def is_dpid(identifier: str) -> bool:
    return bool(_DPID.fullmatch(identifier))


def is_version_string(segment: str) -> bool:
    return bool(_VERSION.fullmatch(segment))


def parse_version_string(segment: str) -> int:
    """Map a version string to a zero-based index.

    Raises:
        InvalidIdentifier: on malformed strings and on ``v0``.
    """
    if not is_version_string(segment):
        raise InvalidIdentifier(f"Not a version string: {segment!r}", field="version")
    if segment.startswith("v"):
        number = int(segment[1:])
        if number == 0:
            raise InvalidIdentifier("Versions are one-based, v0 does not exist", field="version")
        return number - 1
    return int(segment)


def classify(identifier: str) -> ParsedIdentifier:
    if is_dpid(identifier):
        return ParsedIdentifier(
            kind=IdentifierKind.PLAIN_DPID, raw=identifier, dpid=int(identifier)
        )

    ref = parse_stream_ref(identifier)
    if isinstance(ref, CommitId):
        return ParsedIdentifier(
            kind=IdentifierKind.VERSIONED_COMMIT, raw=identifier, stream_id=str(ref.stream)
        )
    return ParsedIdentifier(kind=IdentifierKind.STREAM_ROOT, raw=identifier, stream_id=identifier)


def parse_dpid_path(path: str) -> DpidPath:
    """Split a resolver path; the second segment is a version only if it looks like one."""
    dpid, *rest = path.strip("/").split("/")
    if not is_dpid(dpid):
        raise InvalidIdentifier(f"Path must start with a dPID, got {dpid!r}", field="dpid")

    version_index = None
    if rest and is_version_string(rest[0]):
        version_index = parse_version_string(rest[0])
        rest = rest[1:]

    return DpidPath(dpid=int(dpid), version_index=version_index, suffix="/".join(rest))
