# lorerank/cli/commands/query.py
"""
Query command.

Usage:
    lorerank query "a dragon appears" --store lore.yaml
    lorerank query "a dragon appears" --store lore.yaml --scope global --scope character:alice
    lorerank query "a dragon appears" --store lore.yaml --vector-url http://localhost:8800
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from lorerank.cli.ui import preview, ui
from lorerank.cli.utils import load_cli_config
from lorerank.core.context import ScopeContext
from lorerank.core.exceptions import ConfigError, StorageError
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import CLI
from lorerank.retrieval.orchestrator import MultiCollectionRetriever
from lorerank.storage.yaml_store import YamlCollectionStore
from lorerank.vector_db.base import NullVectorClient
from lorerank.vector_db.http import HttpVectorClient

logger = get_logger(__name__)


def command(
    text: str,
    store: Path,
    config: Optional[Path] = None,
    scopes: Optional[List[str]] = None,
    vector_url: Optional[str] = None,
    top_k: Optional[int] = None,
    as_json: bool = False,
) -> None:
    """Run one retrieval and print the ranked results."""
    overrides = {"retrieval": {"top_k": top_k}} if top_k else None
    try:
        cfg = load_cli_config(config, overrides=overrides)
        collection_store = YamlCollectionStore(store)
    except (ConfigError, StorageError) as e:
        ui.error(str(e))
        raise typer.Exit(1)

    vector_client = HttpVectorClient(vector_url) if vector_url else NullVectorClient()
    retriever = MultiCollectionRetriever(collection_store, vector_client, cfg)
    context = ScopeContext(scopes=scopes or ["global"])

    logger.debug(f"{CLI} query={text!r} scopes={context.scopes} vector_url={vector_url}")
    try:
        results = retriever.retrieve(text, context)
    finally:
        if isinstance(vector_client, HttpVectorClient):
            vector_client.close()

    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return

    if not results:
        ui.warning("No chunks retrieved.", detail="check activation triggers and scopes")
        return

    rows = []
    for rank, result in enumerate(results, start=1):
        mechanisms = ", ".join(dict.fromkeys(p.mechanism for p in result.provenance))
        rows.append(
            (
                str(rank),
                str(result.hash),
                f"{result.final_score:.3f}",
                "yes" if result.inferred else "",
                result.collection_id or "",
                mechanisms,
                preview(result.text),
            )
        )

    ui.table(
        f"Results for {text!r}",
        ["#", "Hash", "Score", "Inferred", "Collection", "Via", "Text"],
        rows,
        justify_right=["#", "Score"],
    )
