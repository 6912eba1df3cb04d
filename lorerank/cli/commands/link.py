# lorerank/cli/commands/link.py
"""
Auto-link command.

Treats the chunks of one collection as an ingestion batch: synthesizes
cross-reference mention counts and adds force/soft links from them.

Usage:
    lorerank link --store lore.yaml --collection lore
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from lorerank.cli.ui import ui
from lorerank.cli.utils import load_cli_config
from lorerank.core.chunk import LinkMode
from lorerank.core.exceptions import LoreRankError
from lorerank.logging.logger import get_logger
from lorerank.storage.yaml_store import YamlCollectionStore
from lorerank.vocabulary.linker import AutoLinker
from lorerank.vocabulary.priority import PriorityIndex
from lorerank.vocabulary.synthesizer import ChunkMetadataSynthesizer

logger = get_logger(__name__)


def command(store: Path, collection: str, config: Optional[Path] = None) -> None:
    try:
        cfg = load_cli_config(config)
        yaml_store = YamlCollectionStore(store)
        coll = yaml_store.get_collection(collection)
    except LoreRankError as e:
        ui.error(str(e))
        raise typer.Exit(1)

    batch = list(coll.chunks.values())
    synth = ChunkMetadataSynthesizer(PriorityIndex.default(cfg.boost.default_weight), cfg.synthesis)
    results = synth.synthesize_batch(batch)

    linked = AutoLinker(cfg.synthesis).link_batch(
        batch, {h: r.mentions for h, r in results.items()}
    )

    before = {c.hash: {(link.target_hash, link.mode) for link in c.chunk_links} for c in batch}
    rows = []
    for chunk in linked:
        for link in chunk.chunk_links:
            if (link.target_hash, link.mode) not in before[chunk.hash]:
                rows.append((str(chunk.hash), str(link.target_hash), link.mode.value))

    if not rows:
        ui.info(f"No new links for '{collection}'.")
        return

    yaml_store.save_collection(
        coll.model_copy(update={"chunks": {c.hash: c for c in linked}})
    )

    ui.table(f"New links in {collection}", ["Source", "Target", "Mode"], rows)
    forced = sum(1 for r in rows if r[2] == LinkMode.FORCE.value)
    ui.success(f"Added {len(rows)} link(s) ({forced} force).")
