from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.history.service.history import HistoryService
from dpid_resolver.domain.registry.port.alias_registry import AliasRegistry
from dpid_resolver.domain.registry.query.list_dpids import ListDpidsHandler
from dpid_resolver.domain.registry.query.resolve_dpid import ResolveDpidHandler
from dpid_resolver.domain.registry.query.reverse_lookup import ReverseLookupHandler
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.registry.service.listing import ListingService
from dpid_resolver.domain.registry.service.reverse import ReverseLookupService
from dpid_resolver.domain.shared.port.manifest_reader import ManifestReader
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope


class RegistryProvider(Provider):
    # Services
    @provide(scope=Scope.APP)
    def get_dpid_service(
        self,
        registry: AliasRegistry,
        history_service: HistoryService,
        cache: ResolverCache,
        config: Config,
    ) -> DpidService:
        return DpidService(
            registry=registry,
            history_service=history_service,
            cache=cache,
            dedup_legacy=config.dedup_legacy_versions,
        )

    @provide(scope=Scope.APP)
    def get_listing_service(
        self,
        registry: AliasRegistry,
        dpid_service: DpidService,
        history_service: HistoryService,
        manifest_reader: ManifestReader,
        config: Config,
    ) -> ListingService:
        return ListingService(
            registry=registry,
            dpid_service=dpid_service,
            history_service=history_service,
            manifest_reader=manifest_reader,
            lookup_timeout=config.listing.lookup_timeout,
            metadata_timeout=config.listing.metadata_timeout,
        )

    @provide(scope=Scope.APP)
    def get_reverse_lookup_service(
        self,
        dpid_service: DpidService,
        listing_service: ListingService,
        cache: ResolverCache,
        config: Config,
    ) -> ReverseLookupService:
        return ReverseLookupService(
            dpid_service=dpid_service,
            listing_service=listing_service,
            cache=cache,
            batch_size=config.listing.reverse_batch_size,
        )

    # Query Handlers
    resolve_dpid_handler = provide(ResolveDpidHandler, scope=Scope.UOW)
    list_dpids_handler = provide(ListDpidsHandler, scope=Scope.UOW)
    reverse_lookup_handler = provide(ReverseLookupHandler, scope=Scope.UOW)
