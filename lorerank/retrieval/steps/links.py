# lorerank/retrieval/steps/links.py
"""
Link Resolve Step - follow declared chunk links.

Force links add their target (transitively, with a visited set so cycles
terminate). Soft links only mark targets that are already present; the
mark turns into a score boost during fusion.

``follow_force_links`` and ``mark_soft_links`` are shared with steps that
add candidates after this one has run (see GroupExpandStep).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable

from lorerank.core.candidate import Candidate
from lorerank.core.chunk import LinkMode
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import RETRIEVER

from .base import QueryState, RetrievalStep

logger = get_logger(__name__)


def follow_force_links(
    state: QueryState,
    result: list[Candidate],
    sources: Iterable[Candidate],
) -> list[Candidate]:
    """
    Append the force-link closure of ``sources`` to ``result``.

    Targets already in ``result`` are not added twice; disabled or unknown
    targets are skipped. Returns the candidates that were added.
    """
    by_hash = {c.hash: c for c in result}
    visited: set[int] = set()
    queue = deque(sources)
    added: list[Candidate] = []

    while queue:
        source = queue.popleft()
        if source.hash in visited:
            continue
        visited.add(source.hash)

        chunk = state.chunk(source.hash)
        if chunk is None:
            continue

        for link in chunk.chunk_links:
            if link.mode != LinkMode.FORCE or link.target_hash in by_hash:
                continue
            target = state.chunk(link.target_hash)
            if target is None:
                logger.debug(
                    f"{RETRIEVER} force link {source.hash} → {link.target_hash} has no stored chunk"
                )
                continue
            if target.disabled:
                continue

            candidate = state.make_candidate(target, base_score=source.base_score)
            candidate.add_provenance("force_link", source_hash=source.hash)
            by_hash[target.hash] = candidate
            result.append(candidate)
            added.append(candidate)
            queue.append(candidate)

    return added


def mark_soft_links(state: QueryState, result: list[Candidate]) -> int:
    """Mark soft-link targets present in ``result``; returns newly marked count."""
    by_hash = {c.hash: c for c in result}
    marked = 0
    for source in result:
        chunk = state.chunk(source.hash)
        if chunk is None:
            continue
        for link in chunk.chunk_links:
            if link.mode != LinkMode.SOFT:
                continue
            target = by_hash.get(link.target_hash)
            if target is None or target.hash == source.hash:
                continue
            if any(
                p.mechanism == "soft_link" and p.source_hash == source.hash
                for p in target.provenance
            ):
                continue
            if not target.soft_linked:
                marked += 1
            target.soft_linked = True
            target.add_provenance("soft_link", source_hash=source.hash)
    return marked


@dataclass
class LinkResolveStep(RetrievalStep):
    """Resolve force links (closure) and soft-link marks."""

    def execute(self, state: QueryState, candidates: list[Candidate]) -> list[Candidate]:
        if not candidates:
            return candidates

        result = list(candidates)
        forced = follow_force_links(state, result, candidates)
        marked = mark_soft_links(state, result)

        logger.debug(f"{RETRIEVER} LinkResolveStep: forced={len(forced)}, soft_marked={marked}")
        return result
