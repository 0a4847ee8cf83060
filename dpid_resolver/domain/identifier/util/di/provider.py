from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.identifier.model.value import ResolverUrls
from dpid_resolver.domain.identifier.query.resolve_path import ResolvePathHandler
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope


class IdentifierProvider(Provider):
    @provide(scope=Scope.APP)
    def get_resolver_urls(self, config: Config) -> ResolverUrls:
        return ResolverUrls(gateway=config.ipfs.gateway.rstrip("/"), nodes=config.nodes.url.rstrip("/"))

    # Query Handlers
    resolve_path_handler = provide(ResolvePathHandler, scope=Scope.UOW)
