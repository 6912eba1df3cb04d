# lorerank/cli/commands/keywords.py
"""
Keyword metadata commands.

Commands:
    lorerank keywords show        - Show keywords/regex per chunk
    lorerank keywords regenerate  - Rebuild keyword metadata from chunk text
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from lorerank.cli.ui import preview, ui
from lorerank.cli.utils import load_cli_config
from lorerank.core.chunk import Collection
from lorerank.core.exceptions import LoreRankError
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import CLI
from lorerank.storage.yaml_store import YamlCollectionStore
from lorerank.vocabulary.priority import PriorityIndex
from lorerank.vocabulary.synthesizer import ChunkMetadataSynthesizer

logger = get_logger(__name__)

app = typer.Typer(
    name="keywords",
    help="Inspect and regenerate chunk keyword metadata.",
    no_args_is_help=True,
)


def _open(store: Path, collection: str) -> tuple[YamlCollectionStore, Collection]:
    try:
        yaml_store = YamlCollectionStore(store)
        return yaml_store, yaml_store.get_collection(collection)
    except LoreRankError as e:
        ui.error(str(e))
        raise typer.Exit(1)


@app.command("show")
def show(
    store: Path = typer.Option(..., "--store", "-s", help="YAML collection store."),
    collection: str = typer.Option(..., "--collection", "-c", help="Collection id."),
    chunk_hash: Optional[int] = typer.Option(None, "--hash", help="Only this chunk."),
) -> None:
    """Show keyword metadata for the chunks of a collection."""
    _, coll = _open(store, collection)

    if chunk_hash is not None and chunk_hash not in coll.chunks:
        ui.warning(f"No chunk {chunk_hash} in collection '{collection}'.")
        return
    chunks = [coll.chunks[chunk_hash]] if chunk_hash is not None else list(coll.chunks.values())

    rows = []
    for chunk in chunks:
        keywords = [k for k in chunk.keywords if k not in chunk.disabled_keywords]
        rows.append(
            (
                str(chunk.hash),
                chunk.section,
                ", ".join(keywords),
                str(len(chunk.keyword_regex) + len(chunk.custom_regex)),
                "disabled" if chunk.disabled else "",
                preview(chunk.text, 40),
            )
        )

    ui.table(
        f"{collection} ({len(rows)} chunks)",
        ["Hash", "Section", "Keywords", "Regex", "State", "Text"],
        rows,
        justify_right=["Regex"],
    )


@app.command("regenerate")
def regenerate(
    store: Path = typer.Option(..., "--store", "-s", help="YAML collection store."),
    collection: str = typer.Option(..., "--collection", "-c", help="Collection id."),
    chunk_hash: Optional[int] = typer.Option(None, "--hash", help="Only this chunk."),
    config: Optional[Path] = typer.Option(None, "--config", help="Config file."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """
    Regenerate keywords from chunk text.

    Replaces system keywords, regex, weights and disabled keywords, and
    clears custom keywords.
    """
    yaml_store, coll = _open(store, collection)

    if chunk_hash is not None and chunk_hash not in coll.chunks:
        ui.error(f"No chunk {chunk_hash} in collection '{collection}'.")
        raise typer.Exit(1)

    targets = [chunk_hash] if chunk_hash is not None else list(coll.chunks)
    if not yes and not typer.confirm(
        f"Regenerate keywords for {len(targets)} chunk(s)? Custom keywords will be lost."
    ):
        ui.info("Cancelled.")
        raise typer.Exit(0)

    try:
        cfg = load_cli_config(config)
    except LoreRankError as e:
        ui.error(str(e))
        raise typer.Exit(1)

    synth = ChunkMetadataSynthesizer(
        PriorityIndex.default(cfg.boost.default_weight), cfg.synthesis
    )
    sections = [c.section for c in coll.chunks.values() if c.section]

    chunks = dict(coll.chunks)
    for h in targets:
        chunks[h] = synth.regenerate_keywords(chunks[h], known_sections=sections)

    yaml_store.save_collection(coll.model_copy(update={"chunks": chunks}))
    logger.info(f"{CLI} Regenerated keywords for {len(targets)} chunks in {collection}")
    ui.success(f"Regenerated keywords for {len(targets)} chunk(s) in '{collection}'.")
