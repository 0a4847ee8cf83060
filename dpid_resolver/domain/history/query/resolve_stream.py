from dpid_resolver.domain.history.model.value import History
from dpid_resolver.domain.history.service.history import HistoryService
from dpid_resolver.domain.shared.query import Query, QueryHandler


class ResolveStream(Query):
    """Resolve a stream ID or commit ID, optionally at a version index."""

    id: str
    version_index: int | None = None


class ResolveStreamHandler(QueryHandler[ResolveStream, History]):
    history_service: HistoryService

    async def run(self, query: ResolveStream) -> History:
        return await self.history_service.resolve_reference(query.id, query.version_index)
