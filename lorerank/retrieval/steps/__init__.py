# lorerank/retrieval/steps/__init__.py
"""
Retrieval Steps - composable post-fan-out stages.

Pipeline: crosslink → keyword_fallback → link_resolve → group_expand
          → inclusion_filter → score_fuse → limit(k)

Each step:
- Takes the per-query state and the current candidate list
- Returns a new candidate list
- Never mutates chunks or collections

Usage:
    from lorerank.retrieval.steps import (
        CrosslinkStep,
        KeywordFallbackStep,
        LimitStep,
        get_step_class,
    )
"""

from .base import BoostScorer, QueryState, RetrievalStep
from .crosslink import CrosslinkStep, crosslink_score, keyword_set
from .fallback import KeywordFallbackStep
from .fuse import ScoreFuseStep, apply_importance
from .groups import GroupExpandStep, build_group_index
from .inclusion import InclusionFilterStep
from .limit import LimitStep
from .links import LinkResolveStep, follow_force_links, mark_soft_links

# =============================================================================
# Step Registry
# =============================================================================

STEP_REGISTRY: dict[str, type[RetrievalStep]] = {
    "crosslink": CrosslinkStep,
    "keyword_fallback": KeywordFallbackStep,
    "link_resolve": LinkResolveStep,
    "group_expand": GroupExpandStep,
    "inclusion_filter": InclusionFilterStep,
    "score_fuse": ScoreFuseStep,
    "limit": LimitStep,
}


def get_step_class(step_type: str) -> type[RetrievalStep]:
    try:
        return STEP_REGISTRY[step_type]
    except KeyError:
        known = ", ".join(STEP_REGISTRY)
        raise ValueError(f"Unknown step type: {step_type!r} (known: {known})") from None


def list_available_steps() -> list[str]:
    return list(STEP_REGISTRY)


__all__ = [
    # Base classes and protocols
    "RetrievalStep",
    "QueryState",
    "BoostScorer",
    # Steps
    "CrosslinkStep",
    "KeywordFallbackStep",
    "LinkResolveStep",
    "GroupExpandStep",
    "InclusionFilterStep",
    "ScoreFuseStep",
    "LimitStep",
    # Helpers
    "crosslink_score",
    "keyword_set",
    "apply_importance",
    "build_group_index",
    "follow_force_links",
    "mark_soft_links",
    # Registry
    "STEP_REGISTRY",
    "get_step_class",
    "list_available_steps",
]
