"""Data bucket tree for a dPID."""

import cyclopts

from dpid_resolver.cli.client import request_json
from dpid_resolver.cli.console import get_console

app = cyclopts.App(name="tree", help="Show the data bucket tree of a dPID")


@app.default
def tree(dpid: int, /, depth: str = "1", version: str | None = None) -> None:
    """Show a dPID's file tree.

    Args:
        dpid: dPID number.
        depth: Directory levels to expand, or ``full``.
        version: Version to show, zero-based or ``v1``.
    """
    console = get_console()
    params = {"depth": depth}
    if version is not None:
        params["version"] = version

    with console.status(f"Walking data bucket of dPID {dpid}..."):
        node = request_json("GET", f"/api/v2/data/dpid/{dpid}", params=params)
    console.tree(node)
