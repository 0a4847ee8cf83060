"""DI provider for the optional Flight SQL batch engine."""

from collections.abc import AsyncIterable

import logfire
from dishka import provide

from dpid_resolver.config import Config
from dpid_resolver.domain.history.port.history_source import BatchSources
from dpid_resolver.domain.history.service.sources import BatchEngineSource
from dpid_resolver.infrastructure.flight.engine import FlightSqlBatchEngine
from dpid_resolver.util.di.base import Provider
from dpid_resolver.util.di.scope import Scope


class FlightProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_batch_sources(self, config: Config) -> AsyncIterable[BatchSources]:
        if not config.flight.url:
            logfire.warn("No Flight SQL URL configured, histories come from the stream store only")
            yield BatchSources([])
            return

        engine = FlightSqlBatchEngine(
            uri=config.flight.url,
            timeout=config.flight.timeout,
            latest_view=config.flight.latest_view,
            versions_view=config.flight.versions_view,
        )
        try:
            yield BatchSources([BatchEngineSource(engine)])
        finally:
            await engine.close()
