from pydantic import ConfigDict, Field

from dpid_resolver.domain.registry.service.reverse import ReverseLookupService
from dpid_resolver.domain.shared.query import Query, QueryHandler, Result


class ReverseLookup(Query):
    stream_id: str


class DpidForStream(Result):
    model_config = ConfigDict(populate_by_name=True)

    dpid: int
    stream_id: str = Field(alias="streamId")


class ReverseLookupHandler(QueryHandler[ReverseLookup, DpidForStream]):
    reverse_service: ReverseLookupService

    async def run(self, query: ReverseLookup) -> DpidForStream:
        dpid = await self.reverse_service.find_dpid(query.stream_id)
        return DpidForStream(dpid=dpid, stream_id=query.stream_id)
