import logging
from contextlib import asynccontextmanager

import logfire
from dishka import AsyncContainer
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dpid_resolver.application.api.v2.errors import map_resolver_error
from dpid_resolver.application.api.v2.routes import data, generic, health, query, resolve
from dpid_resolver.application.di import create_container
from dpid_resolver.config import Config, configure_logging
from dpid_resolver.domain.cache.service.cache import ResolverCache
from dpid_resolver.domain.shared.error import ResolverError
from dpid_resolver.util.di.fastapi import setup_dishka

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = app.state.dishka_container
    yield

    # Let fire-and-forget cache writes land before the store closes
    cache = await container.get(ResolverCache)
    await cache.drain()
    await container.close()


def create_app(
    config: Config | None = None,
    container: AsyncContainer | None = None,
) -> FastAPI:
    """Create FastAPI application."""
    config = config or Config()  # type: ignore[call-arg]

    # Configure logging early
    configure_logging(config.logging)
    logger.info(
        "Starting %s v%s (env=%s)", config.server.name, config.server.version, config.env
    )

    app_instance = FastAPI(
        title=config.server.name,
        description=config.server.description,
        version=config.server.version,
        lifespan=lifespan,
    )

    # Instrument FastAPI for automatic tracing of HTTP requests
    logfire.instrument_httpx()
    logfire.instrument_fastapi(app_instance)

    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Setup dependency injection
    setup_dishka(container or create_container(config), app_instance)

    # Register routes; the generic catch-all goes last
    app_instance.include_router(health.router)
    app_instance.include_router(resolve.router, prefix="/api/v2")
    app_instance.include_router(query.router, prefix="/api/v2")
    app_instance.include_router(data.router, prefix="/api/v2")
    app_instance.include_router(generic.router)

    @app_instance.exception_handler(ResolverError)
    async def resolver_error_handler(request: Request, exc: ResolverError):
        http_exc = map_resolver_error(exc)
        if http_exc.status_code >= 500:
            logger.warning(
                "%s %s failed: %s", request.method, request.url.path, exc.message
            )
        return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)

    # Global exception handler - logs all unhandled exceptions
    @app_instance.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={"code": "InternalError", "message": "Internal server error"},
        )

    return app_instance


# Served with `uvicorn --factory dpid_resolver.application.api.rest.app:create_app`
# so importing this module stays free of side effects.
