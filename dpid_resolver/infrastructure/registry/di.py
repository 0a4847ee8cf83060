"""DI provider for the on-chain alias registry."""

from collections.abc import AsyncIterable
from typing import NewType

import httpx
from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.registry.port.alias_registry import AliasRegistry
from dpid_resolver.domain.shared.error import ConfigurationError
from dpid_resolver.infrastructure.registry.rpc import JsonRpcAliasRegistry
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope

RpcHttpClient = NewType("RpcHttpClient", httpx.AsyncClient)


class RegistryInfraProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_rpc_http_client(self, config: Config) -> AsyncIterable[RpcHttpClient]:
        async with httpx.AsyncClient(timeout=config.registry.timeout) as client:
            yield RpcHttpClient(client)

    @provide(scope=Scope.APP, provides=AliasRegistry)
    def get_alias_registry(self, client: RpcHttpClient, config: Config) -> JsonRpcAliasRegistry:
        if not config.registry.address:
            raise ConfigurationError(
                "RESOLVER_REGISTRY__ADDRESS must be set to the DpidAliasRegistry contract address"
            )
        return JsonRpcAliasRegistry(
            client=client, rpc_url=config.registry.rpc_url, address=config.registry.address
        )
