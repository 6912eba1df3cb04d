# lorerank/retrieval/steps/inclusion.py
"""
Inclusion Filter Step - at most one surviving member per inclusion group.

Chunks without a group always pass. Within a group the first member
encountered holds the slot, unless a later member is prioritized and the
holder is not; then the later member takes the holder's position.
"""

from __future__ import annotations

from dataclasses import dataclass

from lorerank.core.candidate import Candidate
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import RETRIEVER

from .base import QueryState, RetrievalStep

logger = get_logger(__name__)


@dataclass
class InclusionFilterStep(RetrievalStep):
    """Order-preserving mutual exclusion by ``inclusion_group``."""

    def execute(self, state: QueryState, candidates: list[Candidate]) -> list[Candidate]:
        slots: list[Candidate] = []
        holders: dict[str, int] = {}  # group → slot index
        dropped = 0

        for candidate in candidates:
            chunk = state.chunk(candidate.hash)
            group = chunk.inclusion_group if chunk is not None else None
            if not group:
                slots.append(candidate)
                continue

            if group not in holders:
                holders[group] = len(slots)
                slots.append(candidate)
                continue

            slot = holders[group]
            holder = slots[slot]
            holder_chunk = state.chunk(holder.hash)
            holder_prioritized = holder_chunk is not None and holder_chunk.inclusion_prioritize

            if chunk.inclusion_prioritize and not holder_prioritized:
                slots[slot] = candidate
                candidate.add_provenance("inclusion_group", detail=f"replaced {holder.hash} in {group}")
            dropped += 1

        logger.debug(
            f"{RETRIEVER} InclusionFilterStep: groups={len(holders)}, "
            f"input={len(candidates)}, dropped={dropped}"
        )
        return slots
