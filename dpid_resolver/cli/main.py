"""Main CLI application using Cyclopts.

``resolve``, ``history`` and ``tree`` are thin HTTP clients against a
running resolver; ``serve`` starts one.
"""

import cyclopts

from dpid_resolver.cli.commands import history, resolve, serve, tree

app = cyclopts.App(
    name="dpid-resolver",
    help="dPID Resolver - CLI",
)

app.command(resolve.app, name="resolve")
app.command(history.app, name="history")
app.command(tree.app, name="tree")
app.command(serve.app, name="serve")
