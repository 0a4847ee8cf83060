import logging

from dpid_resolver.domain.history.model.streamid import (
    CommitId,
    parse_stream_id,
    parse_stream_ref,
)
from dpid_resolver.domain.history.model.value import History, StreamSummary
from dpid_resolver.domain.history.service.sources import FallbackChain
from dpid_resolver.domain.shared.error import OutOfRange, StreamNotFound
from dpid_resolver.domain.shared.service import Service

logger = logging.getLogger(__name__)


def select_version(history: History, version_index: int | None) -> History:
    """Pin ``latest_manifest_cid`` to the requested version.

    Raises:
        OutOfRange: if the index does not address an existing version.
    """
    if version_index is None:
        return history
    if version_index < 0 or version_index >= len(history.versions):
        raise OutOfRange(version_index, len(history.versions))
    return history.model_copy(
        update={"latest_manifest_cid": history.versions[version_index].manifest_cid}
    )


class HistoryService(Service):
    chain: FallbackChain

    async def resolve_history(self, stream_id: str, version_index: int | None = None) -> History:
        parse_stream_id(stream_id)
        [history] = await self.chain.histories([stream_id])
        return select_version(history, version_index)

    async def resolve_reference(
        self, identifier: str, version_index: int | None = None
    ) -> History:
        """Resolve a stream ID or a commit ID.

        For a commit ID the full stream history is returned with its latest
        manifest pinned to that commit. ``version_index`` is still bounds
        checked first, so an out-of-range index raises ``OutOfRange`` even
        when a commit is given.
        """
        ref = parse_stream_ref(identifier)
        if not isinstance(ref, CommitId):
            return await self.resolve_history(identifier, version_index)

        history = await self.resolve_history(str(ref.stream), version_index)
        for version in history.versions:
            if version.commit_id == identifier:
                return history.model_copy(update={"latest_manifest_cid": version.manifest_cid})

        logger.error("Commit %s not found in versions of stream %s", identifier, history.id)
        raise StreamNotFound(f"Commit {identifier} not found in stream versions")

    async def resolve_histories(self, stream_ids: list[str]) -> list[History]:
        """Resolve many stream roots in one pass through the source chain."""
        if not stream_ids:
            return []
        for stream_id in stream_ids:
            parse_stream_id(stream_id)
        return await self.chain.histories(stream_ids)

    async def summarize(self, stream_ids: list[str]) -> list[StreamSummary]:
        if not stream_ids:
            return []
        for stream_id in stream_ids:
            parse_stream_id(stream_id)
        return await self.chain.summaries(stream_ids)
