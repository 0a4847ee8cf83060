from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.port.history_source import BatchSources
from dpid_resolver.domain.history.port.stream_store import StreamStore
from dpid_resolver.domain.history.query.get_histories import GetHistoriesHandler
from dpid_resolver.domain.history.query.resolve_stream import ResolveStreamHandler
from dpid_resolver.domain.history.service.history import HistoryService
from dpid_resolver.domain.history.service.sources import FallbackChain, StreamStoreSource
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope


class HistoryProvider(Provider):
    @provide(scope=Scope.APP)
    def get_fallback_chain(
        self,
        batch_sources: BatchSources,
        store: StreamStore,
        cache: ResolverCache,
        config: Config,
    ) -> FallbackChain:
        return FallbackChain(
            [
                *batch_sources,
                StreamStoreSource(
                    store=store,
                    cache=cache,
                    sync_timeout_seconds=config.ceramic.sync_timeout_seconds,
                ),
            ]
        )

    history_service = provide(HistoryService, scope=Scope.APP)

    # Query Handlers
    resolve_stream_handler = provide(ResolveStreamHandler, scope=Scope.UOW)
    get_histories_handler = provide(GetHistoriesHandler, scope=Scope.UOW)
