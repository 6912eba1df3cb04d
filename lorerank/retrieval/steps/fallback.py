# lorerank/retrieval/steps/fallback.py
"""
Keyword Fallback Step - repair under-delivering semantic retrieval.

When fewer primary candidates than ``trigger_below`` came back from the
vector service, every unselected chunk is scored with the Boost Calculator
and the best ``limit`` chunks with a positive boost are added.
"""

from __future__ import annotations

from dataclasses import dataclass

from lorerank.core.candidate import Candidate
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import RETRIEVER

from .base import QueryState, RetrievalStep

logger = get_logger(__name__)

FALLBACK_TIER = 0


@dataclass
class KeywordFallbackStep(RetrievalStep):
    """
    Add keyword-matched chunks when semantic results are thin.

    Ranking is by boost descending, lower hash first on ties.

    Args:
        limit: Maximum chunks added (default: 5)
        trigger_below: Run only when primary candidates < this (default: 8)
        prioritize: Place fallback candidates in a leading tier (default: False)
    """

    limit: int = 5
    trigger_below: int = 8
    prioritize: bool = False

    def execute(self, state: QueryState, candidates: list[Candidate]) -> list[Candidate]:
        primary = sum(1 for c in candidates if not c.inferred)
        if self.limit <= 0 or primary >= self.trigger_below:
            logger.debug(f"{RETRIEVER} KeywordFallbackStep: skipped (primary={primary})")
            return candidates

        selected = {c.hash for c in candidates}
        scored: list[tuple[float, int]] = []
        for chunk_hash, chunk in state.chunks.items():
            if chunk_hash in selected or chunk.disabled:
                continue
            boost = state.boost_for(chunk_hash).boost
            if boost > 0:
                scored.append((boost, chunk_hash))

        scored.sort(key=lambda item: (-item[0], item[1]))

        added: list[Candidate] = []
        for boost, chunk_hash in scored[: self.limit]:
            candidate = state.make_candidate(state.chunks[chunk_hash], base_score=0.0)
            if self.prioritize:
                candidate.tier = FALLBACK_TIER
            candidate.add_provenance(
                "keyword_fallback",
                detail=", ".join(state.boost_for(chunk_hash).matches),
                score=boost,
            )
            added.append(candidate)

        logger.debug(
            f"{RETRIEVER} KeywordFallbackStep: primary={primary}, matched={len(scored)}, "
            f"added={len(added)}"
        )
        return candidates + added
