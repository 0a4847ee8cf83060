"""Tests for generic dPID path resolution."""

import pytest

from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.service.history import HistoryService
from dpid_resolver.domain.history.service.sources import FallbackChain, StreamStoreSource
from dpid_resolver.domain.identifier.model.value import ResolverUrls
from dpid_resolver.domain.identifier.query.resolve_path import ResolvePath, ResolvePathHandler
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.shared.error import (
    DataBucketMissing,
    InvalidIdentifier,
    InvalidPath,
    NotFoundError,
    UnsupportedFormat,
)

from tests.fakes import (
    CeramicStream,
    FakeAliasRegistry,
    FakeDagFetcher,
    FakeManifestReader,
    FakeStreamStore,
    dir_node,
    file_node,
    manifest_with_bucket,
)

URLS = ResolverUrls(gateway="https://ipfs.example/ipfs", nodes="https://nodes.example")


@pytest.fixture
def handler(cache: ResolverCache) -> ResolvePathHandler:
    stream = CeramicStream(46, [("manifest-0", 100), ("manifest-1", 200)])
    history_service = HistoryService(
        chain=FallbackChain([StreamStoreSource(FakeStreamStore(stream), cache)])
    )
    dpid_service = DpidService(
        registry=FakeAliasRegistry(aliases={46: stream.stream_id}),
        history_service=history_service,
        cache=cache,
    )
    return ResolvePathHandler(
        dpid_service=dpid_service,
        manifest_reader=FakeManifestReader(
            {
                "manifest-0": {"components": []},
                "manifest-1": manifest_with_bucket("bucket"),
            }
        ),
        dag_fetcher=FakeDagFetcher(
            {
                "bucket": dir_node(("data", "d-data", 1)),
                "bucket/data": dir_node(("a.csv", "f-a", 1)),
                "bucket/data/a.csv": file_node(),
            }
        ),
        urls=URLS,
    )


class TestNodesRedirect:
    async def test_plain_dpid(self, handler: ResolvePathHandler):
        result = await handler.run(ResolvePath(path="46"))
        assert result.redirect == "https://nodes.example/dpid/46"

    async def test_version_is_one_based_for_nodes(self, handler: ResolvePathHandler):
        result = await handler.run(ResolvePath(path="46/0/root/data"))
        assert result.redirect == "https://nodes.example/dpid/46/v1/root/data"

    async def test_non_numeric_dpid(self, handler: ResolvePathHandler):
        with pytest.raises(InvalidIdentifier):
            await handler.run(ResolvePath(path="about"))


class TestRawResolution:
    async def test_bare_dpid_redirects_to_manifest(self, handler: ResolvePathHandler):
        result = await handler.run(ResolvePath(path="46", raw=True))
        assert result.redirect == "https://ipfs.example/ipfs/manifest-1"

    async def test_versioned_manifest(self, handler: ResolvePathHandler):
        result = await handler.run(ResolvePath(path="46/v1", raw=True))
        assert result.redirect == "https://ipfs.example/ipfs/manifest-0"

    async def test_directory_returns_node(self, handler: ResolvePathHandler):
        result = await handler.run(ResolvePath(path="46/root/data", raw=True))
        assert result.redirect is None
        assert result.node["Links"][0]["Name"] == "a.csv"

    async def test_bucket_root(self, handler: ResolvePathHandler):
        result = await handler.run(ResolvePath(path="46/root", raw=True))
        assert result.node["Links"][0]["Name"] == "data"

    async def test_file_redirects_to_gateway(self, handler: ResolvePathHandler):
        result = await handler.run(ResolvePath(path="46/data/data/a.csv", raw=True))
        assert result.redirect == "https://ipfs.example/ipfs/bucket/data/a.csv"

    async def test_missing_path_is_not_found(self, handler: ResolvePathHandler):
        with pytest.raises(NotFoundError):
            await handler.run(ResolvePath(path="46/root/nope", raw=True))

    async def test_suffix_outside_bucket(self, handler: ResolvePathHandler):
        with pytest.raises(InvalidPath):
            await handler.run(ResolvePath(path="46/manifest.json", raw=True))

    async def test_version_without_bucket(self, handler: ResolvePathHandler):
        with pytest.raises(DataBucketMissing):
            await handler.run(ResolvePath(path="46/v1/root", raw=True))


class TestRejected:
    async def test_favicon(self, handler: ResolvePathHandler):
        with pytest.raises(NotFoundError):
            await handler.run(ResolvePath(path="favicon.ico"))

    @pytest.mark.parametrize(
        "query",
        [
            ResolvePath(path="46", jsonld=True),
            ResolvePath(path="46", format="jsonld"),
            ResolvePath(path="46", format="myst"),
        ],
    )
    async def test_unsupported_formats(self, handler: ResolvePathHandler, query: ResolvePath):
        with pytest.raises(UnsupportedFormat):
            await handler.run(query)
