# lorerank/retrieval/steps/limit.py
"""
Limit Step - Truncate to the global top-K.

Runs last, after every expansion stage, on candidates already sorted by
fused score. Disabled chunks are dropped here as well so they can never
reach the output.
"""

from __future__ import annotations

from dataclasses import dataclass

from lorerank.core.candidate import Candidate
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import RETRIEVER

from .base import QueryState, RetrievalStep

logger = get_logger(__name__)


@dataclass
class LimitStep(RetrievalStep):
    """
    Limit output to the final k candidates.

    Args:
        k: Maximum number of candidates to return (default: 8)
    """

    k: int = 8

    def execute(self, state: QueryState, candidates: list[Candidate]) -> list[Candidate]:
        eligible = [c for c in candidates if state.eligible(c.hash)]
        limited = eligible[: max(0, self.k)]

        logger.debug(
            f"{RETRIEVER} LimitStep: k={self.k}, input={len(candidates)}, output={len(limited)}"
        )
        return limited
