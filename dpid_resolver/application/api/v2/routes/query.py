"""Query API routes: batch history, dPID listing and reverse lookup."""

from typing import Annotated

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from dpid_resolver.domain.history.model.value import History
from dpid_resolver.domain.history.query.get_histories import GetHistories, GetHistoriesHandler
from dpid_resolver.domain.registry.model.listing import DEFAULT_METADATA_FIELDS, SortOrder
from dpid_resolver.domain.registry.query.list_dpids import DpidPage, ListDpids, ListDpidsHandler
from dpid_resolver.domain.registry.query.reverse_lookup import (
    DpidForStream,
    ReverseLookup,
    ReverseLookupHandler,
)

router = APIRouter(
    prefix="/query",
    tags=["query"],
    route_class=DishkaRoute,
)


class HistoryRequest(BaseModel):
    ids: list[str] = []


@router.get("/history/{id}")
async def get_history(
    id: str,
    handler: FromDishka[GetHistoriesHandler],
) -> list[History]:
    """Version history for a single dPID, stream ID or commit ID."""
    return await handler.run(GetHistories(ids=[id]))


@router.post("/history")
async def post_histories(
    handler: FromDishka[GetHistoriesHandler],
    body: HistoryRequest | None = None,
    id: str | None = None,
) -> list[History]:
    """Version histories for a mixed batch of identifiers.

    Results come back grouped as streams, then commits, then dPIDs.
    """
    ids = list(body.ids) if body else []
    if id is not None:
        ids.append(id)
    return await handler.run(GetHistories(ids=ids))


@router.get("/dpids")
async def list_dpids(
    request: Request,
    handler: FromDishka[ListDpidsHandler],
    page: Annotated[int, Query(ge=1)] = 1,
    size: Annotated[int, Query(ge=1, le=50)] = 20,
    sort: SortOrder = "desc",
    history: bool = False,
    metadata: bool = False,
    fields: str | None = None,
) -> DpidPage:
    """Paginated listing of registered dPIDs, newest first by default."""
    field_list = (
        [f.strip() for f in fields.split(",") if f.strip()]
        if fields
        else list(DEFAULT_METADATA_FIELDS)
    )
    base_url = str(request.base_url).rstrip("/")
    return await handler.run(
        ListDpids(
            page=page,
            size=size,
            sort=sort,
            history=history,
            metadata=metadata,
            fields=field_list,
            base_url=base_url,
        )
    )


@router.get("/reverse/{stream_id}")
async def reverse_lookup(
    stream_id: str,
    handler: FromDishka[ReverseLookupHandler],
) -> DpidForStream:
    """Find the dPID whose alias points at a stream."""
    return await handler.run(ReverseLookup(stream_id=stream_id))
