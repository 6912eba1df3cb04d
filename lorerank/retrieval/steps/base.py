# lorerank/retrieval/steps/base.py
"""
Base classes and protocols for retrieval steps.

All retrieval steps inherit from RetrievalStep and implement execute().
A step receives the per-query state (query keywords, merged chunk map,
boost scorer) and the current candidate list, and returns a new list.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from lorerank.core.candidate import Candidate
from lorerank.core.chunk import Chunk
from lorerank.core.context import ScopeContext
from lorerank.vocabulary.matcher import BoostResult, QueryKeywords

# =============================================================================
# Protocols for Dependencies
# =============================================================================


@runtime_checkable
class BoostScorer(Protocol):
    """Protocol for keyword boost scoring (see KeywordBoostCalculator)."""

    def score(self, chunk: Chunk, query: QueryKeywords) -> BoostResult: ...


# =============================================================================
# Query State
# =============================================================================


@dataclass
class QueryState:
    """
    Read-only inputs shared by every step of one query.

    Attributes:
        query: Extracted query keywords (and the raw text)
        chunks: Merged hash → Chunk map of every touched collection
        owners: hash → collection id the chunk was read from
        scorer: Boost Calculator
        context: Conversation facts the host passed to retrieve()
    """

    query: QueryKeywords
    chunks: dict[int, Chunk]
    scorer: BoostScorer
    owners: dict[int, str] = field(default_factory=dict)
    context: ScopeContext = field(default_factory=ScopeContext)
    _boosts: dict[int, BoostResult] = field(default_factory=dict, repr=False)

    @property
    def text(self) -> str:
        return self.query.text

    def chunk(self, chunk_hash: int) -> Optional[Chunk]:
        return self.chunks.get(chunk_hash)

    def boost_for(self, chunk_hash: int) -> BoostResult:
        """Boost for a chunk, computed once per query."""
        cached = self._boosts.get(chunk_hash)
        if cached is not None:
            return cached
        chunk = self.chunks.get(chunk_hash)
        result = self.scorer.score(chunk, self.query) if chunk is not None else BoostResult()
        self._boosts[chunk_hash] = result
        return result

    def make_candidate(self, chunk: Chunk, base_score: float = 0.0, inferred: bool = True) -> Candidate:
        return Candidate(
            hash=chunk.hash,
            text=chunk.text,
            base_score=base_score,
            inferred=inferred,
            collection_id=self.owners.get(chunk.hash),
        )

    def eligible(self, chunk_hash: int) -> bool:
        """True when the chunk exists and is not disabled."""
        chunk = self.chunks.get(chunk_hash)
        return chunk is not None and not chunk.disabled


# =============================================================================
# Base Step
# =============================================================================


@dataclass
class RetrievalStep(ABC):
    """
    Base class for retrieval steps.

    Steps take the query state and a list of candidates, and return an
    updated list. Steps never mutate chunks or collections.
    """

    @abstractmethod
    def execute(self, state: QueryState, candidates: list[Candidate]) -> list[Candidate]:
        """Execute step and return updated candidates."""
        ...

    @property
    def name(self) -> str:
        """Return the step class name."""
        return self.__class__.__name__
