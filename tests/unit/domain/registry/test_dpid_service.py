"""Tests for DpidService: migrated and legacy dPID resolution."""

import pytest

from dpid_resolver.domain.cache.model.value import CacheKind
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.service.history import HistoryService
from dpid_resolver.domain.history.service.sources import FallbackChain, StreamStoreSource
from dpid_resolver.domain.registry.model.value import LegacyVersionEntry, dedup_legacy_versions
from dpid_resolver.domain.registry.query.resolve_dpid import ResolveDpid, ResolveDpidHandler
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.shared.error import (
    CeramicContactFailed,
    DpidNotFound,
    OutOfRange,
    RegistryContactFailed,
)

from tests.fakes import OWNER, CeramicStream, FakeAliasRegistry, FakeStreamStore, MemoryCacheStore

LEGACY_VERSIONS = [("bafy-l0", 1650000000), ("bafy-l1", 1660000000)]


@pytest.fixture
def stream() -> CeramicStream:
    return CeramicStream(
        46,
        [
            ("bafy-46-0", 1690000000),
            ("bafy-46-1", 1691000000),
            ("bafy-46-2", 1692000000),
            ("bafy-46-3", 1693000000),
            ("bafy-46-4", 1694000000),
        ],
    )


@pytest.fixture
def store(stream: CeramicStream) -> FakeStreamStore:
    return FakeStreamStore(stream)


@pytest.fixture
def registry(stream: CeramicStream) -> FakeAliasRegistry:
    return FakeAliasRegistry(aliases={46: stream.stream_id}, legacy={12: LEGACY_VERSIONS})


@pytest.fixture
def history_service(store: FakeStreamStore, cache: ResolverCache) -> HistoryService:
    return HistoryService(chain=FallbackChain([StreamStoreSource(store, cache)]))


@pytest.fixture
def dpid_service(
    registry: FakeAliasRegistry, history_service: HistoryService, cache: ResolverCache
) -> DpidService:
    return DpidService(registry=registry, history_service=history_service, cache=cache)


class TestMigratedDpid:
    async def test_dpid_46_latest(self, dpid_service: DpidService):
        history = await dpid_service.resolve_dpid(46)

        assert history.owner == OWNER
        assert history.versions
        assert history.versions[-1].manifest_cid == history.latest_manifest_cid

    async def test_dpid_46_at_version_3(self, dpid_service: DpidService):
        latest = await dpid_service.resolve_dpid(46)
        pinned = await dpid_service.resolve_dpid(46, 3)

        assert pinned.latest_manifest_cid == pinned.versions[3].manifest_cid
        assert pinned.latest_manifest_cid != latest.latest_manifest_cid

    async def test_agrees_with_stream_resolution(
        self, dpid_service: DpidService, history_service: HistoryService, stream: CeramicStream
    ):
        assert await dpid_service.resolve_dpid(46) == await history_service.resolve_history(
            stream.stream_id
        )

    async def test_out_of_range_passes_through(self, dpid_service: DpidService):
        with pytest.raises(OutOfRange):
            await dpid_service.resolve_dpid(46, 5)

    async def test_stream_failure_is_ceramic_error(
        self, dpid_service: DpidService, store: FakeStreamStore, stream: CeramicStream
    ):
        store.failing.add(stream.stream_id)
        with pytest.raises(CeramicContactFailed):
            await dpid_service.resolve_dpid(46)

    async def test_alias_cached_after_first_lookup(
        self,
        dpid_service: DpidService,
        registry: FakeAliasRegistry,
        cache: ResolverCache,
        cache_store: MemoryCacheStore,
        stream: CeramicStream,
    ):
        assert await dpid_service.lookup_alias(46) == stream.stream_id
        await cache.drain()
        assert await dpid_service.lookup_alias(46) == stream.stream_id

        assert registry.resolve_calls == [46]
        assert cache_store.ttls[cache.key(CacheKind.DPID, 46)] == cache.ttl.anchored

    async def test_registry_failure(self, dpid_service: DpidService, registry: FakeAliasRegistry):
        registry.failing.add(46)
        with pytest.raises(RegistryContactFailed):
            await dpid_service.resolve_dpid(46)


class TestLegacyDpid:
    async def test_resolves_latest_legacy_version(self, dpid_service: DpidService):
        history = await dpid_service.resolve_dpid(12)

        assert history.id == ""
        assert history.owner == OWNER
        assert history.latest_manifest_cid == "bafy-l1"
        assert [(v.manifest_cid, v.anchor_time, v.commit_id) for v in history.versions] == [
            ("bafy-l0", 1650000000, ""),
            ("bafy-l1", 1660000000, ""),
        ]

    async def test_legacy_version_index(self, dpid_service: DpidService):
        history = await dpid_service.resolve_dpid(12, 0)
        assert history.latest_manifest_cid == "bafy-l0"

    async def test_idempotent(self, dpid_service: DpidService, cache: ResolverCache):
        first = await dpid_service.resolve_dpid(12)
        await cache.drain()
        second = await dpid_service.resolve_dpid(12)
        assert first == second

    async def test_cached_with_pending_ttl(
        self,
        dpid_service: DpidService,
        registry: FakeAliasRegistry,
        cache: ResolverCache,
        cache_store: MemoryCacheStore,
    ):
        await dpid_service.resolve_dpid(12)
        await cache.drain()
        await dpid_service.resolve_dpid(12)

        assert registry.legacy_calls == [12]
        assert cache_store.ttls[cache.key(CacheKind.LEGACY, 12)] == cache.ttl.pending
        # Unmapped marker spares the alias lookup next time
        assert cache_store.values[cache.key(CacheKind.DPID, 12)] == '""'
        assert registry.resolve_calls == [12]

    async def test_unknown_dpid(self, dpid_service: DpidService):
        with pytest.raises(DpidNotFound):
            await dpid_service.resolve_dpid(999)

    async def test_legacy_out_of_range(self, dpid_service: DpidService):
        with pytest.raises(OutOfRange):
            await dpid_service.resolve_dpid(12, 2)

    async def test_dedup_applies_when_enabled(
        self, history_service: HistoryService, cache: ResolverCache
    ):
        registry = FakeAliasRegistry(
            legacy={5: [("bafy-a", 1), ("bafy-a", 1), ("bafy-b", 2), ("bafy-a", 1)]}
        )
        service = DpidService(
            registry=registry, history_service=history_service, cache=cache, dedup_legacy=True
        )
        history = await service.resolve_dpid(5)
        assert [v.manifest_cid for v in history.versions] == ["bafy-a", "bafy-b", "bafy-a"]

    async def test_dedup_not_applied_in_production(
        self, history_service: HistoryService, cache: ResolverCache
    ):
        registry = FakeAliasRegistry(legacy={5: [("A", 100), ("A", 100), ("B", 200)]})
        service = DpidService(
            registry=registry, history_service=history_service, cache=cache, dedup_legacy=False
        )

        history = await service.resolve_dpid(5)

        assert [(v.manifest_cid, v.anchor_time) for v in history.versions] == [
            ("A", 100),
            ("A", 100),
            ("B", 200),
        ]
        assert history.latest_manifest_cid == "B"


class TestDedupRule:
    def test_collapses_consecutive_duplicates_only(self):
        entries = [
            LegacyVersionEntry(cid="a", timestamp=1),
            LegacyVersionEntry(cid="a", timestamp=1),
            LegacyVersionEntry(cid="a", timestamp=2),
            LegacyVersionEntry(cid="b", timestamp=2),
            LegacyVersionEntry(cid="a", timestamp=2),
        ]
        assert [(e.cid, e.timestamp) for e in dedup_legacy_versions(entries)] == [
            ("a", 1),
            ("a", 2),
            ("b", 2),
            ("a", 2),
        ]

    def test_empty(self):
        assert dedup_legacy_versions([]) == []


async def test_resolve_dpid_handler(dpid_service: DpidService):
    handler = ResolveDpidHandler(dpid_service=dpid_service)
    history = await handler.run(ResolveDpid(dpid=46, version_index=1))
    assert history.latest_manifest_cid == "bafy-46-1"
