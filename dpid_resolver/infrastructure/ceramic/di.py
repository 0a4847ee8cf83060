"""DI provider for the Ceramic stream store."""

from collections.abc import AsyncIterable
from typing import NewType

import httpx
from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.history.port.stream_store import StreamStore
from dpid_resolver.infrastructure.ceramic.stream_store import HttpStreamStore
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope

CeramicHttpClient = NewType("CeramicHttpClient", httpx.AsyncClient)


class CeramicProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_ceramic_http_client(self, config: Config) -> AsyncIterable[CeramicHttpClient]:
        """Pooled client for the Ceramic node."""
        async with httpx.AsyncClient(timeout=config.ceramic.timeout) as client:
            yield CeramicHttpClient(client)

    @provide(scope=Scope.APP, provides=StreamStore)
    def get_stream_store(self, client: CeramicHttpClient, config: Config) -> HttpStreamStore:
        return HttpStreamStore(client=client, base_url=config.ceramic.url)
