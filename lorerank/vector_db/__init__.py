# lorerank/vector_db/__init__.py
"""Vector-similarity service clients and score normalization."""

from .base import NullVectorClient, VectorHit, VectorSimilarityClient
from .http import HttpVectorClient
from .scoring import normalize_score

__all__ = [
    "VectorHit",
    "VectorSimilarityClient",
    "NullVectorClient",
    "HttpVectorClient",
    "normalize_score",
]
