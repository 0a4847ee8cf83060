from enum import StrEnum

from dpid_resolver.domain.shared.model.value import ValueObject


class IdentifierKind(StrEnum):
    PLAIN_DPID = "plain_dpid"
    STREAM_ROOT = "stream_root"
    VERSIONED_COMMIT = "versioned_commit"


class ParsedIdentifier(ValueObject):
    kind: IdentifierKind
    raw: str
    dpid: int | None = None
    # Stream root of a stream or commit ID
    stream_id: str | None = None


class DpidPath(ValueObject):
    """``{dpid}/{version?}/{suffix...}`` split into its parts."""

    dpid: int
    version_index: int | None = None
    suffix: str = ""


class ResolverUrls(ValueObject):
    """Redirect targets for path resolution."""

    gateway: str
    nodes: str
