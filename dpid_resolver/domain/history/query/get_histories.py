"""Batch history lookup over mixed identifiers.

dPIDs and stream/commit IDs are resolved concurrently. Stream roots go
through the source chain in one bulk call, commits one at a time. The batch
is all-or-nothing: the first failure fails the whole request.
"""

import asyncio
import logging

from dpid_resolver.domain.history.model.value import History
from dpid_resolver.domain.history.service.history import HistoryService
from dpid_resolver.domain.identifier.model.value import IdentifierKind
from dpid_resolver.domain.identifier.service.identifier import classify
from dpid_resolver.domain.registry.service.dpid import DpidService
from dpid_resolver.domain.shared.error import ValidationError
from dpid_resolver.domain.shared.query import Query, QueryHandler

logger = logging.getLogger(__name__)


class GetHistories(Query):
    ids: list[str]


class GetHistoriesHandler(QueryHandler[GetHistories, list[History]]):
    history_service: HistoryService
    dpid_service: DpidService

    async def run(self, query: GetHistories) -> list[History]:
        if not query.ids:
            raise ValidationError("Missing /:id or ids array in body", field="ids")

        parsed = [classify(i) for i in query.ids]
        dpids = [p.dpid for p in parsed if p.kind == IdentifierKind.PLAIN_DPID]
        roots = [p.raw for p in parsed if p.kind == IdentifierKind.STREAM_ROOT]
        commits = [p.raw for p in parsed if p.kind == IdentifierKind.VERSIONED_COMMIT]

        logger.info(
            "History query: %d dPIDs, %d streams, %d commits", len(dpids), len(roots), len(commits)
        )

        stream_results, commit_results, dpid_results = await asyncio.gather(
            self.history_service.resolve_histories(roots),
            asyncio.gather(*(self.history_service.resolve_reference(c) for c in commits)),
            asyncio.gather(*(self.dpid_service.resolve_dpid(d) for d in dpids)),
        )
        return [*stream_results, *commit_results, *dpid_results]
