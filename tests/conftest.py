"""Global test fixtures."""

import logfire
import pytest

from dpid_resolver.domain.cache.model.value import CacheNamespace
from dpid_resolver.domain.cache.service.cache import ResolverCache

from tests.fakes import MemoryCacheStore

# Query handlers open logfire spans; keep them local
logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def cache_store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def cache(cache_store: MemoryCacheStore) -> ResolverCache:
    return ResolverCache(store=cache_store, namespace=CacheNamespace(env="test"))
