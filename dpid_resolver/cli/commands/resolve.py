"""Resolve a dPID, stream ID or commit ID."""

import cyclopts

from dpid_resolver.cli.client import request_json
from dpid_resolver.cli.console import get_console

app = cyclopts.App(name="resolve", help="Resolve an identifier to its version history")


@app.default
def resolve(id: str, /, version: str | None = None) -> None:
    """Resolve an identifier.

    Args:
        id: dPID number, stream ID or commit ID.
        version: Version to pin, one-based ``v1`` or zero-based ``0``.
    """
    console = get_console()
    kind = "dpid" if id.isdigit() else "codex"
    path = f"/api/v2/resolve/{kind}/{id}"
    if version is not None:
        path += f"/{version}"

    with console.status(f"Resolving {id}..."):
        history = request_json("GET", path)
    console.history(history)
