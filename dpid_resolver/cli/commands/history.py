"""Batch history lookup."""

import cyclopts

from dpid_resolver.cli.client import request_json
from dpid_resolver.cli.console import get_console

app = cyclopts.App(name="history", help="Look up histories for several identifiers")


@app.default
def history(*ids: str) -> None:
    """Fetch histories for a mix of dPIDs, stream IDs and commit IDs.

    Args:
        ids: Identifiers to look up.
    """
    console = get_console()
    if not ids:
        console.error("No identifiers given", hint="dpid-resolver history 46 kjzl6...")
        raise SystemExit(1)

    with console.status(f"Fetching {len(ids)} histories..."):
        histories = request_json("POST", "/api/v2/query/history", json={"ids": list(ids)})

    for entry in histories:
        console.history(entry)
        console.print()
