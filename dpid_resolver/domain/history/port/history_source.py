from abc import abstractmethod
from typing import NewType, Protocol

from dpid_resolver.domain.history.model.value import History, StreamSummary
from dpid_resolver.domain.shared.port import Port


class HistorySource(Port, Protocol):
    """One backend able to produce version histories for stream roots.

    Results are returned in the order of ``stream_ids``. A source that cannot
    answer for every requested stream raises rather than returning a partial
    result.
    """

    name: str

    @abstractmethod
    async def histories(self, stream_ids: list[str]) -> list[History]: ...

    @abstractmethod
    async def summaries(self, stream_ids: list[str]) -> list[StreamSummary]: ...


# Sources tried before the stream store, fastest first; empty when none is configured
BatchSources = NewType("BatchSources", list[HistorySource])
