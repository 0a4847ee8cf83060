"""Run the resolver HTTP server."""

import cyclopts
import uvicorn

from dpid_resolver.cli.console import get_console
from dpid_resolver.config import Config

app = cyclopts.App(name="serve", help="Run the resolver server")


@app.default
def serve(host: str | None = None, port: int | None = None) -> None:
    """Start the resolver in the foreground.

    Args:
        host: Host to bind to. Defaults to the configured server host.
        port: Port to listen on. Defaults to the configured server port.
    """
    config = Config()  # type: ignore[call-arg]
    host = host or config.server.host
    port = port or config.server.port

    get_console().success(f"Serving {config.server.name} on http://{host}:{port}")
    uvicorn.run(
        "dpid_resolver.application.api.rest.app:create_app",
        factory=True,
        host=host,
        port=port,
        log_config=None,
    )
