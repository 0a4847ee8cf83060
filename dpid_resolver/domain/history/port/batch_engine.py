from abc import abstractmethod
from typing import Protocol

from dpid_resolver.domain.history.model.value import StreamSummary, Version
from dpid_resolver.domain.shared.port import Port


class BatchQueryEngine(Port, Protocol):
    """Pre-aggregated, SQL-queryable view over the streaming store.

    Answers many streams in one round trip, but may lag behind the store or
    be missing rows entirely.
    """

    @abstractmethod
    async def latest_states(self, stream_ids: list[str]) -> list[StreamSummary]: ...

    @abstractmethod
    async def version_logs(self, stream_ids: list[str]) -> dict[str, list[Version]]:
        """Map each stream ID to its versions in log order."""
        ...
