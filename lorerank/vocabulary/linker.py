# lorerank/vocabulary/linker.py
"""
Auto-Linker - turns cross-reference mention counts into chunk links.

Runs once per ingestion batch, after synthesis. Only chunks of that batch
are linked; chunks from earlier batches are never revisited.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from lorerank.config.schema import SynthesisConfig
from lorerank.core.chunk import Chunk, ChunkLink, LinkMode
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import LINKER

from .variations import normalize_for_matching

logger = get_logger(__name__)


class AutoLinker:
    """
    Adds force/soft links from mention counts.

    A count at or above ``force_link_mentions`` (default 7) adds a force
    link to the mentioned section's first chunk; at or above
    ``soft_link_mentions`` (default 3) adds a soft link.

    Usage:
        linker = AutoLinker()
        results = synthesizer.synthesize_batch(chunks)
        linked = linker.link_batch(
            chunks, {h: r.mentions for h, r in results.items()}
        )
    """

    def __init__(self, config: Optional[SynthesisConfig] = None):
        self.config = config or SynthesisConfig()

    def mode_for(self, count: int) -> Optional[LinkMode]:
        if count >= self.config.force_link_mentions:
            return LinkMode.FORCE
        if count >= self.config.soft_link_mentions:
            return LinkMode.SOFT
        return None

    def link_batch(
        self,
        chunks: Sequence[Chunk],
        mentions: Mapping[int, Mapping[str, int]],
    ) -> list[Chunk]:
        """
        Return the batch with links added.

        Args:
            chunks: Chunks of one ingestion pass, in batch order
            mentions: chunk hash → {section name → mention count}

        Returns:
            New Chunk objects (same order); unchanged chunks are returned as-is
        """
        section_targets: dict[str, int] = {}
        for chunk in chunks:
            key = normalize_for_matching(chunk.section)
            if key and key not in section_targets:
                section_targets[key] = chunk.hash

        linked: list[Chunk] = []
        added = upgraded = 0

        for chunk in chunks:
            links = {link.target_hash: link for link in chunk.chunk_links}
            order = [link.target_hash for link in chunk.chunk_links]
            changed = False

            for section, count in sorted(mentions.get(chunk.hash, {}).items()):
                mode = self.mode_for(count)
                target = section_targets.get(normalize_for_matching(section))
                if mode is None or target is None or target == chunk.hash:
                    continue

                existing = links.get(target)
                if existing is None:
                    links[target] = ChunkLink(target_hash=target, mode=mode)
                    order.append(target)
                    added += 1
                    changed = True
                elif existing.mode == LinkMode.SOFT and mode == LinkMode.FORCE:
                    links[target] = ChunkLink(target_hash=target, mode=LinkMode.FORCE)
                    upgraded += 1
                    changed = True

            if changed:
                chunk = chunk.model_copy(update={"chunk_links": [links[t] for t in order]})
            linked.append(chunk)

        logger.info(
            f"{LINKER} Linked batch of {len(chunks)} chunks: "
            f"{added} links added, {upgraded} upgraded to force"
        )
        return linked


__all__ = ["AutoLinker"]
