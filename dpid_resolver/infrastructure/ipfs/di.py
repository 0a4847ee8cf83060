"""DI provider for IPFS adapters."""

from collections.abc import AsyncIterable
from typing import NewType

import httpx
from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.shared.port.manifest_reader import ManifestReader
from dpid_resolver.domain.tree.port.dag_fetcher import DagFetcher
from dpid_resolver.infrastructure.ipfs.dag import FailoverDagFetcher
from dpid_resolver.infrastructure.ipfs.manifest import HttpManifestReader
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope

IpfsHttpClient = NewType("IpfsHttpClient", httpx.AsyncClient)


class IpfsProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_ipfs_http_client(self, config: Config) -> AsyncIterable[IpfsHttpClient]:
        """Shared client for the DAG API and gateways (connection pooling)."""
        async with httpx.AsyncClient(timeout=config.ipfs.timeout, follow_redirects=True) as client:
            yield IpfsHttpClient(client)

    @provide(scope=Scope.APP, provides=DagFetcher)
    def get_dag_fetcher(self, client: IpfsHttpClient, config: Config) -> FailoverDagFetcher:
        return FailoverDagFetcher(
            client=client,
            dag_api_url=config.ipfs.dag_api,
            fallback_dag_api_urls=config.ipfs.fallback_dag_api_urls,
            gateways=config.ipfs.public_gateways,
            timeout=config.ipfs.timeout,
        )

    @provide(scope=Scope.APP, provides=ManifestReader)
    def get_manifest_reader(self, client: IpfsHttpClient, config: Config) -> HttpManifestReader:
        return HttpManifestReader(client=client, gateway_url=config.ipfs.gateway)
