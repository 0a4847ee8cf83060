from dataclasses import dataclass
from enum import StrEnum


class CacheKind(StrEnum):
    """Kinds of values kept in the cache, part of every key."""

    COMMIT = "commit"
    DPID = "dpid"
    LEGACY = "legacy"
    REVERSE = "reverse"
    IPFS_TREE = "ipfs-tree"


@dataclass(frozen=True)
class CacheTtl:
    """TTL classes in seconds.

    ``anchored`` is for finalized data that cannot change, ``pending`` for
    data that may still be revised before anchoring.
    """

    anchored: int = 60 * 60 * 24 * 7
    pending: int = 60 * 10

    def for_anchor_time(self, anchor_time: int | None) -> int:
        return self.anchored if anchor_time is not None else self.pending


@dataclass(frozen=True)
class CacheNamespace:
    """Builds `resolver-{env}-{kind}-{identifier}` keys."""

    env: str

    def key(self, kind: CacheKind, identifier: str | int) -> str:
        return f"resolver-{self.env}-{kind}-{identifier}"
