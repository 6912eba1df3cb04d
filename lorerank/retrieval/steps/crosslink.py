# lorerank/retrieval/steps/crosslink.py
"""
Crosslink Step - add chunks related to the primary results by vocabulary.

For every unselected chunk, similarity to a primary candidate is the
shared-keyword fraction plus a capped shared-tag bonus. Chunks meeting the
threshold are added as inferred candidates.
"""

from __future__ import annotations

from dataclasses import dataclass

from lorerank.core.candidate import Candidate
from lorerank.core.chunk import Chunk
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import RETRIEVER
from lorerank.vocabulary.variations import stem_keyword

from .base import QueryState, RetrievalStep

logger = get_logger(__name__)


def keyword_set(chunk: Chunk) -> frozenset[str]:
    """Stemmed keywords of a chunk, excluding its disabled keywords."""
    disabled = {stem_keyword(k) for k in chunk.disabled_keywords}
    return frozenset(s for s in (stem_keyword(k) for k in chunk.keywords) if s and s not in disabled)


def crosslink_score(
    a: Chunk,
    b: Chunk,
    tag_weight: float = 0.25,
    max_tag_bonus: float = 0.5,
) -> float:
    """
    Similarity between two chunks.

    ``|K(a) ∩ K(b)| / max(|K(a)|, |K(b)|) + min(max_tag_bonus, shared_tags × tag_weight)``
    """
    ka, kb = keyword_set(a), keyword_set(b)
    denom = max(len(ka), len(kb))
    fraction = len(ka & kb) / denom if denom else 0.0
    shared_tags = len(set(a.tags) & set(b.tags))
    return fraction + min(max_tag_bonus, shared_tags * tag_weight)


@dataclass
class CrosslinkStep(RetrievalStep):
    """
    Expand primary results with crosslinked chunks.

    Args:
        threshold: Minimum similarity to add a chunk (default: 0.25)
        max_results: Maximum crosslinked chunks added (default: 5)
        tag_weight: Bonus per shared tag (default: 0.25)
        max_tag_bonus: Cap on the tag bonus (default: 0.5)
    """

    threshold: float = 0.25
    max_results: int = 5
    tag_weight: float = 0.25
    max_tag_bonus: float = 0.5

    def execute(self, state: QueryState, candidates: list[Candidate]) -> list[Candidate]:
        sources = [c for c in candidates if not c.inferred and state.eligible(c.hash)]
        if not sources or self.max_results <= 0:
            return candidates

        selected = {c.hash for c in candidates}
        scored: list[tuple[float, int, Candidate]] = []

        for chunk_hash, chunk in state.chunks.items():
            if chunk_hash in selected or chunk.disabled:
                continue

            best_score = 0.0
            best_source = None
            for source in sources:
                score = crosslink_score(
                    state.chunks[source.hash],
                    chunk,
                    tag_weight=self.tag_weight,
                    max_tag_bonus=self.max_tag_bonus,
                )
                if score > best_score:
                    best_score, best_source = score, source

            if best_source is not None and best_score >= self.threshold:
                scored.append((best_score, chunk_hash, best_source))

        scored.sort(key=lambda item: (-item[0], item[1]))

        added: list[Candidate] = []
        for score, chunk_hash, source in scored[: self.max_results]:
            candidate = state.make_candidate(
                state.chunks[chunk_hash],
                base_score=min(1.0, score) * source.base_score,
            )
            candidate.add_provenance(
                "crosslink",
                detail="shared keywords/tags",
                source_hash=source.hash,
                score=score,
            )
            added.append(candidate)

        logger.debug(
            f"{RETRIEVER} CrosslinkStep: τ={self.threshold}, sources={len(sources)}, "
            f"added={len(added)}"
        )
        return candidates + added
