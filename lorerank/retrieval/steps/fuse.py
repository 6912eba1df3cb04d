# lorerank/retrieval/steps/fuse.py
"""
Score Fuse Step - combine vector similarity and keyword boost, then sort.

    fused = base + keyword_boost / 100 + soft_boost (when soft-linked)
    fused *= group_multiplier (when group-boosted)
    fused = fused * importance / 100 + (importance - 100) / 1000
    fused *= decay_multiplier(age)   (chat chunks, when decay is enabled)

The result is floored at 0. Candidates sort by tier, then fused score
descending, then hash ascending, so the order is total.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from lorerank.config.schema import DecayConfig
from lorerank.core.candidate import Candidate
from lorerank.core.chunk import Chunk
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import RETRIEVER

from ..decay import decay_multiplier, decays, effective_age
from .base import QueryState, RetrievalStep

logger = get_logger(__name__)

NEUTRAL_IMPORTANCE = 100


def apply_importance(score: float, importance: int) -> float:
    """
    Weight a fused score by chunk importance (0-200, neutral 100).

    Examples:
        >>> apply_importance(0.8, 100)
        0.8
        >>> round(apply_importance(0.8, 150), 3)
        1.25
    """
    if importance == NEUTRAL_IMPORTANCE:
        return score
    return score * importance / 100 + (importance - NEUTRAL_IMPORTANCE) / 1000


def sort_key(candidate: Candidate) -> tuple:
    return (candidate.tier, -candidate.final_score, candidate.hash)


@dataclass
class ScoreFuseStep(RetrievalStep):
    """
    Compute final scores and sort.

    Args:
        soft_boost: Added for soft-linked candidates (default: 0.15)
        group_multiplier: Applied to group-boosted candidates (default: 1.3)
        use_importance: Apply importance weighting (default: True)
        decay: Temporal decay settings (default: no decay)
    """

    soft_boost: float = 0.15
    group_multiplier: float = 1.3
    use_importance: bool = True
    decay: Optional[DecayConfig] = None

    def execute(self, state: QueryState, candidates: list[Candidate]) -> list[Candidate]:
        for candidate in candidates:
            boost = state.boost_for(candidate.hash)
            candidate.keyword_boost = boost.boost
            candidate.matches = list(boost.matches)

            fused = candidate.base_score + candidate.keyword_boost / 100
            if candidate.soft_linked:
                fused += self.soft_boost
            if candidate.group_boosted:
                fused *= self.group_multiplier

            chunk = state.chunk(candidate.hash)
            if self.use_importance and chunk is not None:
                fused = apply_importance(fused, chunk.importance)
            if chunk is not None:
                fused = self._decay(state, candidate, chunk, fused)

            candidate.final_score = max(0.0, fused)

        ordered = sorted(candidates, key=sort_key)

        logger.debug(f"{RETRIEVER} ScoreFuseStep: scored={len(ordered)}")
        return ordered

    def _decay(self, state: QueryState, candidate: Candidate, chunk: Chunk, fused: float) -> float:
        current = state.context.current_message_id
        if self.decay is None or not self.decay.enabled or current is None or not decays(chunk):
            return fused
        age = effective_age(
            chunk.message_id, current, state.context.scenes, self.decay.scene_aware
        )
        multiplier = decay_multiplier(age, self.decay)
        if multiplier < 1.0:
            candidate.add_provenance("temporal_decay", detail=f"age={age}", score=multiplier)
        return fused * multiplier
