# lorerank/cli/ui.py
"""
Console output shared by the lorerank commands.

    from lorerank.cli.ui import ui

    ui.success("Saved 3 chunks")
    ui.table("Results", ["Hash", "Score"], rows, justify_right=["Score"])
"""

from __future__ import annotations

from typing import Iterable, Sequence

from rich.console import Console
from rich.table import Table

console = Console()


class UI:
    """Status lines and result tables in one consistent style."""

    def success(self, msg: str) -> None:
        console.print(f"[bold green]OK[/bold green] {msg}")

    def error(self, msg: str) -> None:
        console.print(f"[bold red]Error:[/bold red] {msg}")

    def warning(self, msg: str, detail: str = "") -> None:
        suffix = f" [dim]- {detail}[/dim]" if detail else ""
        console.print(f"[yellow]Warning:[/yellow] {msg}{suffix}")

    def info(self, msg: str) -> None:
        console.print(f"[dim]{msg}[/dim]")

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Iterable[Sequence[str]],
        justify_right: Sequence[str] = (),
    ) -> None:
        grid = Table(title=title, header_style="bold cyan")
        for name in columns:
            grid.add_column(name, justify="right" if name in justify_right else "left")
        for row in rows:
            grid.add_row(*row)
        console.print(grid)


def preview(text: str, width: int = 60) -> str:
    """Collapse whitespace and cut ``text`` to ``width`` characters."""
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[: width - 1] + "…"


ui = UI()

__all__ = ["UI", "ui", "console", "preview"]
