"""Tests for history sources and the fallback chain."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from dpid_resolver.domain.cache.model.value import CacheKind
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.model.value import History, StreamSummary, SyncPolicy, Version
from dpid_resolver.domain.history.port.batch_engine import BatchQueryEngine
from dpid_resolver.domain.history.port.history_source import HistorySource
from dpid_resolver.domain.history.service.sources import (
    BatchEngineSource,
    FallbackChain,
    StreamStoreSource,
)
from dpid_resolver.domain.shared.error import BatchEngineError, StreamNotFound

from tests.fakes import OWNER, CeramicStream, FakeStreamStore, MemoryCacheStore


@pytest.fixture
def stream() -> CeramicStream:
    return CeramicStream(
        1,
        [("bafy-m0", 1700000000), ("bafy-m1", 1700000100), ("bafy-m2", None)],
    )


class TestStreamStoreSource:
    async def test_history_in_log_order(self, stream: CeramicStream, cache: ResolverCache):
        source = StreamStoreSource(FakeStreamStore(stream), cache)

        history = await source.history(stream.stream_id)

        assert history.id == stream.stream_id
        assert history.owner == OWNER
        assert history.latest_manifest_cid == "bafy-m2"
        assert [v.manifest_cid for v in history.versions] == ["bafy-m0", "bafy-m1", "bafy-m2"]
        assert [v.commit_id for v in history.versions] == stream.commit_ids
        assert [v.anchor_time for v in history.versions] == [1700000000, 1700000100, None]

    async def test_log_order_survives_out_of_order_loads(
        self, stream: CeramicStream, cache: ResolverCache
    ):
        first, second, _ = stream.commit_ids
        store = FakeStreamStore(stream, delays={first: 0.03, second: 0.02})

        history = await StreamStoreSource(store, cache).history(stream.stream_id)

        assert [v.commit_id for v in history.versions] == stream.commit_ids
        assert [v.manifest_cid for v in history.versions] == ["bafy-m0", "bafy-m1", "bafy-m2"]

    async def test_anchor_entries_are_not_versions(self, stream: CeramicStream, cache: ResolverCache):
        # Two anchors in the log, still three versions
        assert len(stream.log) == 5
        history = await StreamStoreSource(FakeStreamStore(stream), cache).history(stream.stream_id)
        assert len(history.versions) == 3

    async def test_commits_loaded_with_prefer_cache(self, stream: CeramicStream, cache: ResolverCache):
        store = FakeStreamStore(stream)
        await StreamStoreSource(store, cache).history(stream.stream_id)

        commit_calls = [(i, s) for i, s in store.calls if i != stream.stream_id]
        assert sorted(commit_calls) == sorted((c, SyncPolicy.PREFER_CACHE) for c in stream.commit_ids)

    async def test_versions_cached_by_anchor_state(
        self, stream: CeramicStream, cache: ResolverCache, cache_store: MemoryCacheStore
    ):
        await StreamStoreSource(FakeStreamStore(stream), cache).history(stream.stream_id)
        await cache.drain()

        ttls = [cache_store.ttls[cache.key(CacheKind.COMMIT, c)] for c in stream.commit_ids]
        assert ttls == [cache.ttl.anchored, cache.ttl.anchored, cache.ttl.pending]

    async def test_cached_versions_skip_commit_loads(
        self, stream: CeramicStream, cache: ResolverCache, cache_store: MemoryCacheStore
    ):
        store = FakeStreamStore(stream)
        source = StreamStoreSource(store, cache)
        first = await source.history(stream.stream_id)
        await cache.drain()
        store.calls.clear()

        second = await source.history(stream.stream_id)
        await cache.drain()

        assert second == first
        assert store.calls == [(stream.stream_id, None)]
        # Only anchored hits get their TTL refreshed
        bumped = {key for key, _ in cache_store.bumps}
        assert bumped == {cache.key(CacheKind.COMMIT, c) for c in stream.commit_ids[:2]}

    async def test_summary(self, stream: CeramicStream, cache: ResolverCache):
        summary = await StreamStoreSource(FakeStreamStore(stream), cache).summary(stream.stream_id)
        assert summary == StreamSummary(
            stream_id=stream.stream_id,
            owner=OWNER,
            manifest_cid="bafy-m2",
            version_count=3,
            latest_timestamp=1700000100,
        )

    async def test_unknown_stream(self, cache: ResolverCache):
        other = CeramicStream(2, [("bafy-x", None)])
        with pytest.raises(StreamNotFound):
            await StreamStoreSource(FakeStreamStore(), cache).history(other.stream_id)


def _engine(summaries: list[StreamSummary], logs: dict[str, list[Version]]) -> BatchQueryEngine:
    engine = MagicMock(spec=BatchQueryEngine)
    engine.latest_states = AsyncMock(return_value=summaries)
    engine.version_logs = AsyncMock(return_value=logs)
    return engine


class TestBatchEngineSource:
    async def test_histories_follow_input_order(self):
        a, b = CeramicStream(1, [("bafy-a", 1)]), CeramicStream(2, [("bafy-b", 2)])
        engine = _engine(
            [
                StreamSummary(stream_id=b.stream_id, owner="0xb", manifest_cid="bafy-b", version_count=1),
                StreamSummary(stream_id=a.stream_id, owner="0xa", manifest_cid="bafy-a", version_count=1),
            ],
            {
                a.stream_id: [Version(commit_id=a.commit_ids[0], manifest_cid="bafy-a", anchor_time=1)],
                b.stream_id: [Version(commit_id=b.commit_ids[0], manifest_cid="bafy-b", anchor_time=2)],
            },
        )

        histories = await BatchEngineSource(engine).histories([a.stream_id, b.stream_id])

        assert [h.id for h in histories] == [a.stream_id, b.stream_id]
        assert [h.owner for h in histories] == ["0xa", "0xb"]

    async def test_missing_rows_fail_the_batch(self):
        a = CeramicStream(1, [("bafy-a", 1)])
        with pytest.raises(BatchEngineError):
            await BatchEngineSource(_engine([], {})).histories([a.stream_id])

    async def test_missing_summary_fails(self):
        a = CeramicStream(1, [("bafy-a", 1)])
        with pytest.raises(BatchEngineError):
            await BatchEngineSource(_engine([], {})).summaries([a.stream_id])


def _source(name: str, result=None, error: Exception | None = None) -> HistorySource:
    source = MagicMock(spec=HistorySource)
    source.name = name
    source.histories = AsyncMock(return_value=result, side_effect=error)
    source.summaries = AsyncMock(return_value=result, side_effect=error)
    return source


class TestFallbackChain:
    async def test_first_answer_wins(self):
        history = History(id="k1", owner="0x", latest_manifest_cid="m", versions=[])
        first, second = _source("a", [history]), _source("b", [])
        assert await FallbackChain([first, second]).histories(["k1"]) == [history]
        second.histories.assert_not_called()

    async def test_batch_failure_falls_back_with_warning(self, caplog: pytest.LogCaptureFixture):
        history = History(id="k1", owner="0x", latest_manifest_cid="m", versions=[])
        engine = _source("batch-engine", error=BatchEngineError("flight down"))
        store = _source("stream-store", [history])

        with caplog.at_level(logging.WARNING):
            result = await FallbackChain([engine, store]).histories(["k1"])

        assert result == [history]
        assert "batch-engine failed" in caplog.text

    async def test_last_failure_propagates(self):
        chain = FallbackChain(
            [_source("a", error=BatchEngineError("x")), _source("b", error=StreamNotFound("gone"))]
        )
        with pytest.raises(StreamNotFound):
            await chain.summaries(["k1"])

    def test_needs_a_source(self):
        with pytest.raises(ValueError):
            FallbackChain([])
