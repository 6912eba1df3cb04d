# lorerank/vector_db/scoring.py
"""
Normalize native vector scores into "higher is better" similarity in [0, 1].

Applied once, immediately after fan-out; every later stage assumes the
normalized convention.
"""

from __future__ import annotations

import math

from lorerank.config.schema import ScoreConvention


def normalize_score(score: float, convention: ScoreConvention = "similarity") -> float:
    """
    Convert a native score to similarity in [0, 1].

    Conventions:
        similarity:       clamp(score)
        cosine_distance:  clamp(1 - score)
        distance:         1 / (1 + score), score < 0 treated as 0

    Examples:
        >>> normalize_score(0.2, "cosine_distance")
        0.8
        >>> normalize_score(1.0, "distance")
        0.5
    """
    if score is None or (isinstance(score, float) and math.isnan(score)):
        return 0.0

    if convention == "cosine_distance":
        value = 1.0 - score
    elif convention == "distance":
        value = 1.0 / (1.0 + max(0.0, score))
    else:
        value = score

    return max(0.0, min(1.0, float(value)))


__all__ = ["normalize_score"]
