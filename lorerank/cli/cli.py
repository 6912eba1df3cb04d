# lorerank/cli/cli.py
"""
lorerank CLI - Main application.

Commands:
    lorerank query      Retrieve and rank chunks for a query
    lorerank keywords   Inspect or regenerate chunk keyword metadata
    lorerank link       Auto-link the chunks of a collection

NOTE: Commands use lazy loading - implementations are imported only when invoked.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from lorerank.cli.commands.keywords import app as keywords_app
from lorerank.cli.utils import set_verbose

app = typer.Typer(
    name="lorerank",
    help="lorerank - hybrid keyword/vector retrieval for prompt context.",
    no_args_is_help=True,
    add_completion=False,
)

app.add_typer(keywords_app, name="keywords")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """lorerank command line."""
    set_verbose(verbose)


@app.command("query")
def query(
    text: str = typer.Argument(..., help="Query text."),
    store: Path = typer.Option(..., "--store", "-s", help="YAML collection store."),
    config: Optional[Path] = typer.Option(None, "--config", help="Config file."),
    scope: Optional[List[str]] = typer.Option(None, "--scope", help="Scope key (repeatable)."),
    vector_url: Optional[str] = typer.Option(None, "--vector-url", help="Vector service URL."),
    top_k: Optional[int] = typer.Option(None, "--top-k", "-k", help="Override global top-K."),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON."),
) -> None:
    """Retrieve and rank chunks for a query."""
    from lorerank.cli.commands import query as mod

    mod.command(
        text=text,
        store=store,
        config=config,
        scopes=scope,
        vector_url=vector_url,
        top_k=top_k,
        as_json=as_json,
    )


@app.command("link")
def link(
    store: Path = typer.Option(..., "--store", "-s", help="YAML collection store."),
    collection: str = typer.Option(..., "--collection", "-c", help="Collection id."),
    config: Optional[Path] = typer.Option(None, "--config", help="Config file."),
) -> None:
    """Add force/soft links from cross-section mentions."""
    from lorerank.cli.commands import link as mod

    mod.command(store=store, collection=collection, config=config)


if __name__ == "__main__":
    app()
