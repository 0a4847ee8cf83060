from dpid_resolver.domain.history.model.value import History
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.shared.query import Query, QueryHandler


class ResolveDpid(Query):
    dpid: int
    version_index: int | None = None


class ResolveDpidHandler(QueryHandler[ResolveDpid, History]):
    dpid_service: DpidService

    async def run(self, query: ResolveDpid) -> History:
        return await self.dpid_service.resolve_dpid(query.dpid, query.version_index)
