import re
from enum import IntEnum
from typing import Any

from pydantic import Field

from dpid_resolver.domain.shared.model.value import ValueObject

_EIP155_PREFIX = re.compile(r"did:pkh:eip155:[0-9]+:")


def normalize_owner(controller: str) -> str:
    """Strip the DID/chain prefix, leaving the bare account address."""
    return _EIP155_PREFIX.sub("", controller)


class EventType(IntEnum):
    GENESIS = 0
    SIGNED = 1
    ANCHOR = 2


class SyncPolicy(IntEnum):
    PREFER_CACHE = 0
    SYNC_ALWAYS = 1
    NEVER_SYNC = 2
    SYNC_ON_ERROR = 3


class Version(ValueObject):
    """One entry of a version history.

    Serialized with the field aliases so cached values and HTTP responses keep
    the ``{version, manifest, time}`` shape.
    """

    commit_id: str = Field(alias="version")
    manifest_cid: str = Field(alias="manifest")
    anchor_time: int | None = Field(default=None, alias="time")


class History(ValueObject):
    """Ordered version history of one research object, oldest version first."""

    id: str
    owner: str
    latest_manifest_cid: str = Field(alias="manifest")
    versions: list[Version]


class LogEntry(ValueObject):
    cid: str
    type: EventType
    timestamp: int | None = None


class StreamState(ValueObject):
    """The streaming store's view of a stream, or of a stream at a commit."""

    stream_id: str
    log: list[LogEntry]
    controllers: list[str]
    content: dict[str, Any] = {}

    @property
    def manifest(self) -> str | None:
        return self.content.get("manifest")

    @property
    def owner(self) -> str:
        return normalize_owner(self.controllers[0]) if self.controllers else ""


class StreamSummary(ValueObject):
    """Latest state of a stream without its per-version log."""

    stream_id: str
    owner: str
    manifest_cid: str
    version_count: int
    latest_timestamp: int | None = None
