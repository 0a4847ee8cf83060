from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.cache.model.value import CacheNamespace, CacheTtl
from dpid_resolver.domain.cache.port.cache_store import CacheStore
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope


class CacheProvider(Provider):
    @provide(scope=Scope.APP)
    def get_resolver_cache(self, store: CacheStore, config: Config) -> ResolverCache:
        return ResolverCache(
            store=store,
            namespace=CacheNamespace(env=config.env),
            ttl=CacheTtl(anchored=config.cache.ttl_anchored, pending=config.cache.ttl_pending),
        )
