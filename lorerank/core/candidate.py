# lorerank/core/candidate.py
"""
Candidate - ephemeral scored chunk produced during one query.

Candidates are created and destroyed within a single retrieve() call and
are never persisted. RankedResult is the frozen view handed to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ProvenanceEntry:
    """
    Why a candidate is in the result set.

    Provenance exists for debugging and explainability only; nothing in the
    pipeline reads it to make a decision.

    Examples:
        >>> ProvenanceEntry(mechanism="vector", collection_id="lore", score=0.82)
        >>> ProvenanceEntry(mechanism="force_link", source_hash=1042)
    """

    mechanism: str
    detail: str = ""
    source_hash: Optional[int] = None
    collection_id: Optional[str] = None
    score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"mechanism": self.mechanism}
        if self.detail:
            data["detail"] = self.detail
        if self.source_hash is not None:
            data["source_hash"] = self.source_hash
        if self.collection_id is not None:
            data["collection_id"] = self.collection_id
        if self.score is not None:
            data["score"] = round(self.score, 6)
        return data


@dataclass
class Candidate:
    """
    A chunk under consideration for the current query.

    Attributes:
        hash: Chunk hash
        text: Chunk text
        base_score: Normalized vector similarity in [0, 1] (0 for inferred)
        keyword_boost: Boost Calculator output (weight units, 100 = 1.0 fused)
        final_score: Fused score used for ranking
        inferred: True when added by crosslink/fallback/link/group expansion
        provenance: Mechanisms that added or adjusted this candidate
        collection_id: Collection the chunk was read from
        matches: Keywords/patterns that fired in the Boost Calculator
        soft_linked: Marked by a soft link from another selected chunk
        group_boosted: Member of a chunk group triggered by the query
        tier: Ordering tier; lower tiers sort first (fallback priority)
    """

    hash: int
    text: str
    base_score: float = 0.0
    keyword_boost: float = 0.0
    final_score: float = 0.0
    inferred: bool = False
    provenance: List[ProvenanceEntry] = field(default_factory=list)
    collection_id: Optional[str] = None
    matches: List[str] = field(default_factory=list)
    soft_linked: bool = False
    group_boosted: bool = False
    tier: int = 1

    def add_provenance(self, mechanism: str, **kwargs: Any) -> None:
        self.provenance.append(ProvenanceEntry(mechanism=mechanism, **kwargs))

    def to_result(self) -> "RankedResult":
        return RankedResult(
            hash=self.hash,
            text=self.text,
            final_score=self.final_score,
            inferred=self.inferred,
            provenance=tuple(self.provenance),
            collection_id=self.collection_id,
        )


@dataclass(frozen=True)
class RankedResult:
    """One entry of the ranked output of retrieve()."""

    hash: int
    text: str
    final_score: float
    inferred: bool
    provenance: tuple = ()
    collection_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "text": self.text,
            "final_score": self.final_score,
            "inferred": self.inferred,
            "collection_id": self.collection_id,
            "provenance": [p.to_dict() for p in self.provenance],
        }


__all__ = ["ProvenanceEntry", "Candidate", "RankedResult"]
