"""Tests for HistoryService and the history queries."""

import pytest

from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.model.value import History, Version
from dpid_resolver.domain.history.query.get_histories import GetHistories, GetHistoriesHandler
from dpid_resolver.domain.history.query.resolve_stream import ResolveStream, ResolveStreamHandler
from dpid_resolver.domain.history.service.history import HistoryService, select_version
from dpid_resolver.domain.history.service.sources import FallbackChain, StreamStoreSource
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.shared.error import (
    InvalidIdentifier,
    OutOfRange,
    StreamNotFound,
    ValidationError,
)

from tests.fakes import CeramicStream, FakeAliasRegistry, FakeStreamStore, cid_str


@pytest.fixture
def stream() -> CeramicStream:
    return CeramicStream(1, [("bafy-m0", 100), ("bafy-m1", 200), ("bafy-m2", 300), ("bafy-m3", None)])


@pytest.fixture
def other() -> CeramicStream:
    return CeramicStream(2, [("bafy-o0", 100)])


@pytest.fixture
def history_service(stream: CeramicStream, other: CeramicStream, cache: ResolverCache) -> HistoryService:
    store = FakeStreamStore(stream, other)
    return HistoryService(chain=FallbackChain([StreamStoreSource(store, cache)]))


class TestSelectVersion:
    def _history(self, n: int) -> History:
        return History(
            id="k",
            owner="0x",
            latest_manifest_cid=f"m{n - 1}",
            versions=[Version(commit_id=f"c{i}", manifest_cid=f"m{i}") for i in range(n)],
        )

    def test_none_keeps_latest(self):
        history = self._history(3)
        assert select_version(history, None) is history

    def test_pins_manifest(self):
        pinned = select_version(self._history(3), 1)
        assert pinned.latest_manifest_cid == pinned.versions[1].manifest_cid == "m1"
        assert len(pinned.versions) == 3

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_out_of_range(self, index: int):
        with pytest.raises(OutOfRange):
            select_version(self._history(3), index)


class TestHistoryService:
    async def test_resolve_history(self, history_service: HistoryService, stream: CeramicStream):
        history = await history_service.resolve_history(stream.stream_id)
        assert history.latest_manifest_cid == "bafy-m3"
        assert [v.manifest_cid for v in history.versions] == stream.manifests

    async def test_versioned_manifest_matches_version_entry(
        self, history_service: HistoryService, stream: CeramicStream
    ):
        history = await history_service.resolve_history(stream.stream_id, 2)
        assert history.latest_manifest_cid == history.versions[2].manifest_cid == "bafy-m2"

    async def test_commit_pins_its_manifest(self, history_service: HistoryService, stream: CeramicStream):
        history = await history_service.resolve_reference(stream.commit_ids[1])
        assert history.id == stream.stream_id
        assert history.latest_manifest_cid == "bafy-m1"
        assert len(history.versions) == 4

    async def test_commit_wins_over_version_index(
        self, history_service: HistoryService, stream: CeramicStream
    ):
        history = await history_service.resolve_reference(stream.commit_ids[0], 3)
        assert history.latest_manifest_cid == "bafy-m0"

    async def test_commit_still_bounds_checks_version_index(
        self, history_service: HistoryService, stream: CeramicStream
    ):
        with pytest.raises(OutOfRange):
            await history_service.resolve_reference(stream.commit_ids[0], 5)

    async def test_unknown_commit(self, history_service: HistoryService, stream: CeramicStream):
        stray = str(stream.stream.at_commit(cid_str(424242)))
        with pytest.raises(StreamNotFound):
            await history_service.resolve_reference(stray)

    async def test_invalid_id(self, history_service: HistoryService):
        with pytest.raises(InvalidIdentifier):
            await history_service.resolve_history("not-a-stream")

    async def test_empty_batches(self, history_service: HistoryService):
        assert await history_service.resolve_histories([]) == []
        assert await history_service.summarize([]) == []

    async def test_bulk_keeps_request_order(
        self, history_service: HistoryService, stream: CeramicStream, other: CeramicStream
    ):
        histories = await history_service.resolve_histories([other.stream_id, stream.stream_id])
        assert [h.id for h in histories] == [other.stream_id, stream.stream_id]


class TestQueries:
    async def test_resolve_stream(self, history_service: HistoryService, stream: CeramicStream):
        handler = ResolveStreamHandler(history_service=history_service)
        history = await handler.run(ResolveStream(id=stream.stream_id, version_index=0))
        assert history.latest_manifest_cid == "bafy-m0"

    async def test_get_histories_groups_by_kind(
        self,
        history_service: HistoryService,
        cache: ResolverCache,
        stream: CeramicStream,
        other: CeramicStream,
    ):
        registry = FakeAliasRegistry(aliases={46: other.stream_id})
        dpid_service = DpidService(registry=registry, history_service=history_service, cache=cache)
        handler = GetHistoriesHandler(history_service=history_service, dpid_service=dpid_service)

        histories = await handler.run(
            GetHistories(ids=["46", stream.commit_ids[1], stream.stream_id])
        )

        # Streams first, then commits, then dPIDs
        assert [h.id for h in histories] == [stream.stream_id, stream.stream_id, other.stream_id]
        assert histories[0].latest_manifest_cid == "bafy-m3"
        assert histories[1].latest_manifest_cid == "bafy-m1"
        assert histories[2].latest_manifest_cid == "bafy-o0"

    async def test_get_histories_rejects_empty(self, history_service: HistoryService, cache: ResolverCache):
        dpid_service = DpidService(
            registry=FakeAliasRegistry(), history_service=history_service, cache=cache
        )
        handler = GetHistoriesHandler(history_service=history_service, dpid_service=dpid_service)
        with pytest.raises(ValidationError):
            await handler.run(GetHistories(ids=[]))

    async def test_get_histories_fails_whole_batch(
        self, history_service: HistoryService, cache: ResolverCache, stream: CeramicStream
    ):
        dpid_service = DpidService(
            registry=FakeAliasRegistry(), history_service=history_service, cache=cache
        )
        handler = GetHistoriesHandler(history_service=history_service, dpid_service=dpid_service)
        with pytest.raises(InvalidIdentifier):
            await handler.run(GetHistories(ids=[stream.stream_id, "garbage"]))
