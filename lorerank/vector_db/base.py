# lorerank/vector_db/base.py
"""
Vector-similarity service contract.

The retriever only calls ``query``; ``insert``, ``delete`` and
``list_hashes`` are used by ingestion tooling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

from lorerank.core.chunk import Chunk


@dataclass(frozen=True)
class VectorHit:
    """One result row: chunk hash plus the service's native score."""

    hash: int
    score: float


@runtime_checkable
class VectorSimilarityClient(Protocol):
    """Protocol for vector-similarity services."""

    def query(
        self,
        collection_id: str,
        text: str,
        top_k: int,
        threshold: float = 0.0,
    ) -> list[VectorHit]: ...

    def insert(self, collection_id: str, chunks: Sequence[Chunk]) -> None: ...

    def delete(self, collection_id: str, hashes: Sequence[int]) -> None: ...

    def list_hashes(self, collection_id: str) -> list[int]: ...


class NullVectorClient:
    """Returns no hits, so retrieval runs on keyword fallback alone."""

    def query(
        self,
        collection_id: str,
        text: str,
        top_k: int,
        threshold: float = 0.0,
    ) -> list[VectorHit]:
        return []

    def insert(self, collection_id: str, chunks: Sequence[Chunk]) -> None:
        return None

    def delete(self, collection_id: str, hashes: Sequence[int]) -> None:
        return None

    def list_hashes(self, collection_id: str) -> list[int]:
        return []


__all__ = ["VectorHit", "VectorSimilarityClient", "NullVectorClient"]
