"""Resolution API routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Request

from dpid_resolver.application.api.v2.routes.generic import resolve_path_response
from dpid_resolver.application.api.v2.routes.params import parse_version
from dpid_resolver.domain.history.model.value import History
from dpid_resolver.domain.history.query.resolve_stream import ResolveStream, ResolveStreamHandler
from dpid_resolver.domain.identifier.query.resolve_path import ResolvePathHandler
from dpid_resolver.domain.registry.query.resolve_dpid import ResolveDpid, ResolveDpidHandler

router = APIRouter(
    prefix="/resolve",
    tags=["resolve"],
    route_class=DishkaRoute,
)


@router.get("/dpid/{dpid}")
@router.get("/dpid/{dpid}/{version}")
async def resolve_dpid(
    dpid: int,
    handler: FromDishka[ResolveDpidHandler],
    version: str | None = None,
) -> History:
    """Resolve a dPID, optionally at a version (`v1` or zero-based `0`)."""
    return await handler.run(ResolveDpid(dpid=dpid, version_index=parse_version(version)))


@router.get("/codex/{id}")
@router.get("/codex/{id}/{version}")
async def resolve_codex(
    id: str,
    handler: FromDishka[ResolveStreamHandler],
    version: str | None = None,
) -> History:
    """Resolve a stream ID or commit ID to its version history."""
    return await handler.run(ResolveStream(id=id, version_index=parse_version(version)))


@router.get("/{path:path}")
async def resolve_generic(
    path: str,
    request: Request,
    handler: FromDishka[ResolvePathHandler],
):
    """Generic dPID path resolution, same as the root route."""
    return await resolve_path_response(path, request, handler)
