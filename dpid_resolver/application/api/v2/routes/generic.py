"""Catch-all ``/{dpid}/{version?}/{suffix...}`` route; must be registered last."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from dpid_resolver.domain.identifier.query.resolve_path import ResolvePath, ResolvePathHandler

router = APIRouter(
    tags=["resolve"],
    route_class=DishkaRoute,
)


async def resolve_path_response(
    path: str, request: Request, handler: ResolvePathHandler
) -> Response:
    params = request.query_params
    result = await handler.run(
        ResolvePath(
            path=path,
            # Flags are presence-only, e.g. /46?raw
            raw="raw" in params,
            jsonld="jsonld" in params,
            format=params.get("format"),
        )
    )
    if result.redirect is not None:
        return RedirectResponse(result.redirect, status_code=302)
    return JSONResponse(result.node)


@router.get("/{path:path}", include_in_schema=False)
async def resolve_root_path(
    path: str,
    request: Request,
    handler: FromDishka[ResolvePathHandler],
) -> Response:
    return await resolve_path_response(path, request, handler)
