# lorerank/retrieval/steps/groups.py
"""
Group Expand Step - cooperative chunk groups.

A group is triggered when any of its keywords (union over its members)
occurs in the lowercased query. Present members of triggered groups are
marked for the group multiplier; triggered groups that require a member
but have none present get their best member force-included. Force links
of a force-included member are followed, so the closure holds for it too.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lorerank.core.candidate import Candidate
from lorerank.core.chunk import Chunk
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import RETRIEVER

from .base import QueryState, RetrievalStep
from .links import follow_force_links, mark_soft_links

logger = get_logger(__name__)


@dataclass
class GroupInfo:
    name: str
    keywords: set[str] = field(default_factory=set)
    members: list[Chunk] = field(default_factory=list)
    required: bool = False

    def triggered_by(self, lowered_query: str) -> bool:
        return any(kw and kw in lowered_query for kw in self.keywords)


def build_group_index(chunks: dict[int, Chunk]) -> dict[str, GroupInfo]:
    """Index every named chunk group; keywords are merged across members."""
    index: dict[str, GroupInfo] = {}
    for chunk_hash in sorted(chunks):
        chunk = chunks[chunk_hash]
        group = chunk.chunk_group
        if group is None or not group.name:
            continue
        info = index.setdefault(group.name, GroupInfo(name=group.name))
        info.keywords.update(k.lower() for k in group.group_keywords if k)
        info.members.append(chunk)
        info.required = info.required or group.requires_group_member
    return index


@dataclass
class GroupExpandStep(RetrievalStep):
    """
    Mark and enforce triggered chunk groups.

    Args:
        max_forced: Maximum members force-included across all groups (default: 5)
    """

    max_forced: int = 5

    def execute(self, state: QueryState, candidates: list[Candidate]) -> list[Candidate]:
        index = build_group_index(state.chunks)
        if not index:
            return candidates

        lowered = state.text.lower()
        triggered = {name for name, info in index.items() if info.triggered_by(lowered)}
        if not triggered:
            return candidates

        result = list(candidates)
        present = {c.hash for c in result}

        boosted = 0
        for candidate in result:
            chunk = state.chunk(candidate.hash)
            if chunk is None or chunk.chunk_group is None:
                continue
            if chunk.chunk_group.name in triggered:
                candidate.group_boosted = True
                candidate.add_provenance("chunk_group", detail=chunk.chunk_group.name)
                boosted += 1

        forced: list[Candidate] = []
        for name in sorted(triggered):
            info = index[name]
            if not info.required or len(forced) >= self.max_forced:
                continue
            if any(m.hash in present for m in info.members):
                continue

            available = [m for m in info.members if not m.disabled]
            if not available:
                logger.warning(f"{RETRIEVER} GroupExpandStep: required group {name!r} has no enabled members")
                continue

            best = min(available, key=lambda m: (-state.boost_for(m.hash).boost, m.hash))
            candidate = state.make_candidate(best, base_score=0.0)
            candidate.group_boosted = True
            candidate.add_provenance("chunk_group", detail=f"required member of {name}")
            result.append(candidate)
            present.add(best.hash)
            forced.append(candidate)

        linked: list[Candidate] = []
        if forced:
            linked = follow_force_links(state, result, forced)
            for candidate in linked:
                chunk = state.chunk(candidate.hash)
                if chunk is not None and chunk.chunk_group is not None and chunk.chunk_group.name in triggered:
                    candidate.group_boosted = True
                    candidate.add_provenance("chunk_group", detail=chunk.chunk_group.name)
            mark_soft_links(state, result)

        logger.debug(
            f"{RETRIEVER} GroupExpandStep: triggered={sorted(triggered)}, "
            f"boosted={boosted}, forced={len(forced)}, linked={len(linked)}"
        )
        return result
