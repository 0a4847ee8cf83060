from dishka import AsyncContainer, from_context, make_async_container

from dpid_resolver.config import Config
from dpid_resolver.domain.cache.util.di.provider import CacheProvider
from dpid_resolver.domain.history.util.di.provider import HistoryProvider
from dpid_resolver.domain.identifier.util.di.provider import IdentifierProvider
from dpid_resolver.domain.registry.util.di.provider import RegistryProvider
from dpid_resolver.domain.tree.util.di.provider import TreeProvider
from dpid_resolver.infrastructure.cache.di import CacheInfraProvider
from dpid_resolver.infrastructure.ceramic.di import CeramicProvider
from dpid_resolver.infrastructure.flight.di import FlightProvider
from dpid_resolver.infrastructure.ipfs.di import IpfsProvider
from dpid_resolver.infrastructure.registry.di import RegistryInfraProvider
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        ConfigProvider(),
        CacheInfraProvider(),
        CeramicProvider(),
        FlightProvider(),
        RegistryInfraProvider(),
        IpfsProvider(),
        CacheProvider(),
        HistoryProvider(),
        RegistryProvider(),
        IdentifierProvider(),
        TreeProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
