"""Console output for the CLI.

Provides a Console class that wraps rich for consistent output.
All CLI output should go through this module.
"""

from datetime import datetime, timezone
from typing import Any

from rich.console import Console as RichConsole
from rich.table import Table
from rich.tree import Tree


def format_timestamp(timestamp: int | None) -> str:
    """Render an anchor time (unix seconds); pending versions have none."""
    if timestamp is None:
        return "pending"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


class Console:
    """CLI output manager wrapping rich."""

    def __init__(self, *, force_terminal: bool | None = None) -> None:
        self._console = RichConsole(force_terminal=force_terminal, stderr=False)
        self._err_console = RichConsole(force_terminal=force_terminal, stderr=True)

    def success(self, message: str) -> None:
        self._console.print(f"[green]✓[/green] {message}")

    def error(self, message: str, *, hint: str | None = None) -> None:
        """Print an error message to stderr."""
        self._err_console.print(f"[red]✗[/red] {message}")
        if hint:
            self._err_console.print(f"  [dim]{hint}[/dim]")

    def print(self, *args: Any, **kwargs: Any) -> None:
        self._console.print(*args, **kwargs)

    def history(self, history: dict[str, Any]) -> None:
        """Print one resolved history as a header plus a versions table."""
        title = history.get("id") or "legacy"
        self._console.print(f"[bold]{title}[/bold]  [dim]owner[/dim] {history.get('owner', '')}")
        self._console.print(f"  [dim]manifest[/dim] {history.get('manifest', '')}")

        table = Table(show_header=True, header_style="bold")
        table.add_column("#", style="dim", width=4)
        table.add_column("Manifest")
        table.add_column("Anchored")
        for i, version in enumerate(history.get("versions", []), 1):
            table.add_row(
                f"v{i}",
                version.get("manifest", ""),
                format_timestamp(version.get("time")),
            )
        self._console.print(table)

    def tree(self, node: dict[str, Any]) -> None:
        """Print a data bucket tree."""
        root = Tree(_label(node))
        _add_children(root, node)
        self._console.print(root)

    def status(self, message: str):
        """Return a status context manager for long operations."""
        return self._console.status(message)


def _label(node: dict[str, Any]) -> str:
    if node.get("type") == "directory":
        return f"[bold blue]{node.get('name', '')}/[/bold blue]"
    size = node.get("size")
    return f"{node.get('name', '')} [dim]{size if size is not None else ''}[/dim]"


def _add_children(branch: Tree, node: dict[str, Any]) -> None:
    for child in node.get("children") or []:
        _add_children(branch.add(_label(child)), child)


# Module-level default instance for convenience
_default: Console | None = None


def get_console() -> Console:
    """Get the default console instance."""
    global _default
    if _default is None:
        _default = Console()
    return _default
