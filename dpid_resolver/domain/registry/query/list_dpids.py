from pydantic import Field

from dpid_resolver.domain.registry.model.listing import (
    DEFAULT_METADATA_FIELDS,
    ListedDpid,
    Pagination,
    SortOrder,
)
from dpid_resolver.domain.registry.service.listing import ListingOptions, ListingService
from dpid_resolver.domain.shared.query import Query, QueryHandler, Result


class ListDpids(Query):
    page: int = Field(default=1, ge=1)
    size: int = Field(default=20, ge=1, le=50)
    sort: SortOrder = "desc"
    history: bool = False
    metadata: bool = False
    fields: list[str] = list(DEFAULT_METADATA_FIELDS)
    base_url: str = ""


class DpidPage(Result):
    dpids: list[ListedDpid]
    pagination: Pagination


class ListDpidsHandler(QueryHandler[ListDpids, DpidPage]):
    listing_service: ListingService

    async def run(self, query: ListDpids) -> DpidPage:
        options = ListingOptions(
            page=query.page,
            size=query.size,
            sort=query.sort,
            history=query.history,
            metadata=query.metadata,
            fields=query.fields or list(DEFAULT_METADATA_FIELDS),
        )
        rows, pagination = await self.listing_service.list_page(options, query.base_url)
        return DpidPage(dpids=rows, pagination=pagination)
