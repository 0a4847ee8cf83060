"""DI provider for the cache store."""

from collections.abc import AsyncIterable

import logfire
from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.cache.port.cache_store import CacheStore
from dpid_resolver.infrastructure.cache.redis import NullCacheStore, RedisCacheStore
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope


class CacheInfraProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_cache_store(self, config: Config) -> AsyncIterable[CacheStore]:
        if not config.cache.enabled:
            logfire.info("Cache disabled, using null store")
            yield NullCacheStore()
            return

        store = RedisCacheStore.from_url(config.cache.url)
        try:
            yield store
        finally:
            await store.close()
