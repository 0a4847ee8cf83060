from abc import abstractmethod
from typing import Protocol

from dpid_resolver.domain.history.model.value import StreamState, SyncPolicy
from dpid_resolver.domain.shared.port import Port


class StreamStore(Port, Protocol):
    """Read access to the streaming document store."""

    @abstractmethod
    async def load_stream(
        self,
        stream_or_commit_id: str,
        sync: SyncPolicy | None = None,
        timeout_seconds: int | None = None,
    ) -> StreamState:
        """Load a stream, or the stream as of a commit.

        When loading a commit the returned log ends with that commit.

        Raises:
            StreamNotFound: if the store does not know the stream.
            CeramicContactFailed: on transport errors.
        """
        ...
