# lorerank/retrieval/orchestrator.py
"""
Multi-Collection Orchestrator - the ``retrieve`` entry point.

Flow (per query):
    ActivationGate → Fan-out (thread pool) → Chunk conditions → Merge & Dedup
    → Crosslink → KeywordFallback → LinkResolve → GroupExpand
    → InclusionFilter → ScoreFuse & Sort → TopK

Nothing in here raises for an unavailable collection, a malformed regex,
a hit without stored metadata, or an empty query: each is logged and
contained, and shows up as a smaller (possibly empty) result.

Usage:
    retriever = MultiCollectionRetriever(store, vector_client, config)
    results = retriever.retrieve("a dragon appears", ScopeContext(scopes=["global"]))
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional, Sequence

from lorerank.config.schema import LoreRankConfig
from lorerank.core.candidate import Candidate, RankedResult
from lorerank.core.chunk import Chunk, Collection
from lorerank.core.context import ScopeContext
from lorerank.core.exceptions import (
    CollectionUnavailableError,
    EmptyQueryError,
    MissingChunkMetadataError,
)
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import PIPELINE, RETRIEVER
from lorerank.storage.base import CollectionStore
from lorerank.vector_db.base import VectorHit, VectorSimilarityClient
from lorerank.vector_db.scoring import normalize_score
from lorerank.vocabulary.matcher import KeywordBoostCalculator, QueryKeywordExtractor
from lorerank.vocabulary.priority import PriorityIndex

from .activation import activated_collections, filter_chunks
from .steps import (
    BoostScorer,
    CrosslinkStep,
    GroupExpandStep,
    InclusionFilterStep,
    KeywordFallbackStep,
    LimitStep,
    LinkResolveStep,
    QueryState,
    RetrievalStep,
    ScoreFuseStep,
)

logger = get_logger(__name__)


def build_steps(config: LoreRankConfig) -> list[RetrievalStep]:
    """Post-fan-out step sequence for ``config``."""
    steps: list[RetrievalStep] = []

    if config.crosslink.enabled:
        steps.append(
            CrosslinkStep(
                threshold=config.crosslink.threshold,
                max_results=config.crosslink.max_results,
                tag_weight=config.crosslink.tag_weight,
                max_tag_bonus=config.crosslink.max_tag_bonus,
            )
        )
    if config.fallback.enabled:
        steps.append(
            KeywordFallbackStep(
                limit=config.fallback.limit,
                trigger_below=config.fallback_trigger(),
                prioritize=config.fallback.prioritize,
            )
        )
    steps.append(LinkResolveStep())
    if config.groups.enabled:
        steps.append(GroupExpandStep(max_forced=config.groups.max_forced))
    steps.append(InclusionFilterStep())
    steps.append(
        ScoreFuseStep(
            soft_boost=config.links.soft_boost,
            group_multiplier=config.groups.boost_multiplier if config.groups.enabled else 1.0,
            use_importance=config.importance.enabled,
            decay=config.decay,
        )
    )
    steps.append(LimitStep(k=config.retrieval.top_k))
    return steps


class MultiCollectionRetriever:
    """
    Fans a query out to every activated collection and ranks the merged result.

    Args:
        store: Collection store (read-only during queries)
        vector_client: Vector-similarity service
        config: Retrieval configuration (defaults when omitted)
        priority_index: Keyword priorities for boost scoring
        scorer: Boost scorer override (defaults to KeywordBoostCalculator)
    """

    def __init__(
        self,
        store: CollectionStore,
        vector_client: VectorSimilarityClient,
        config: Optional[LoreRankConfig] = None,
        priority_index: Optional[PriorityIndex] = None,
        scorer: Optional[BoostScorer] = None,
    ):
        self.store = store
        self.vector_client = vector_client
        self.config = config or LoreRankConfig()
        self.extractor = QueryKeywordExtractor(
            synthesis=self.config.synthesis,
            max_keywords=self.config.boost.max_query_keywords,
        )
        self.scorer = scorer or KeywordBoostCalculator(
            priority_index or PriorityIndex.default(self.config.boost.default_weight),
            self.config.boost,
        )
        self.steps = build_steps(self.config)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def retrieve(
        self,
        query_text: str,
        scope_context: Optional[ScopeContext] = None,
        cancel: Optional[threading.Event] = None,
    ) -> list[RankedResult]:
        """
        Retrieve and rank chunks for ``query_text``.

        Args:
            query_text: Finished query string built by the host application
            scope_context: Scope keys and conversation facts
            cancel: Set to abandon the query; the result is then ``[]``

        Returns:
            At most ``retrieval.top_k`` results, best first
        """
        ctx = scope_context or ScopeContext()

        if not query_text or not query_text.strip():
            logger.debug(f"{RETRIEVER} {EmptyQueryError('empty query text')}")
            return []

        collections = activated_collections(
            self.store.list_collections(ctx.scopes), query_text, ctx
        )
        if not collections:
            logger.debug(f"{RETRIEVER} {EmptyQueryError('no activated collections')}")
            return []

        if _cancelled(cancel):
            return []

        hits = self._fan_out(collections, query_text)

        if _cancelled(cancel):
            logger.info(f"{RETRIEVER} Query cancelled after fan-out")
            return []

        visible = self._visible_chunks(collections, query_text, ctx)
        chunks, owners, candidates = self._merge(collections, hits, visible)
        state = QueryState(
            query=self.extractor.extract(query_text),
            chunks=chunks,
            scorer=self.scorer,
            owners=owners,
            context=ctx,
        )

        for step in self.steps:
            if _cancelled(cancel):
                logger.info(f"{RETRIEVER} Query cancelled before {step.name}")
                return []
            candidates = step.execute(state, candidates)

        results = [c.to_result() for c in candidates]
        logger.info(
            f"{RETRIEVER} Retrieved {len(results)} chunks from {len(collections)} collections "
            f"({sum(1 for r in results if r.inferred)} inferred)"
        )
        return results

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def _query_collection(self, collection: Collection, text: str) -> list[VectorHit]:
        retrieval = self.config.retrieval
        return self.vector_client.query(
            collection.id,
            text,
            top_k=retrieval.collection_top_k(),
            threshold=retrieval.vector_threshold,
        )

    def _fan_out(self, collections: Sequence[Collection], text: str) -> dict[str, list[VectorHit]]:
        """One concurrent query per collection; failures degrade to no hits."""
        results: dict[str, list[VectorHit]] = {c.id: [] for c in collections}
        max_workers = max(1, min(self.config.retrieval.max_workers, len(collections)))

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_id = {
                executor.submit(self._query_collection, c, text): c.id for c in collections
            }
            for future in as_completed(future_to_id):
                collection_id = future_to_id[future]
                try:
                    results[collection_id] = list(future.result())
                except CollectionUnavailableError as e:
                    logger.warning(f"{RETRIEVER} Skipping collection: {e}")
                except Exception as e:
                    error = CollectionUnavailableError(collection_id, str(e))
                    logger.warning(f"{RETRIEVER} Skipping collection: {error}")

        logger.debug(
            f"{PIPELINE} Fan-out: {len(collections)} collections, "
            f"{sum(len(h) for h in results.values())} hits, workers={max_workers}"
        )
        return results

    # ------------------------------------------------------------------
    # Merge & dedup
    # ------------------------------------------------------------------

    def _visible_chunks(
        self, collections: Sequence[Collection], text: str, ctx: ScopeContext
    ) -> dict[str, dict[int, Chunk]]:
        """Per-collection chunk maps with condition-hidden chunks removed."""
        if not self.config.chunk_conditions.enabled:
            return {c.id: c.chunks for c in collections}
        return {
            c.id: {chunk.hash: chunk for chunk in filter_chunks(c.chunks.values(), text, ctx)}
            for c in collections
        }

    def _merge(
        self,
        collections: Sequence[Collection],
        hits: dict[str, list[VectorHit]],
        visible: dict[str, dict[int, Chunk]],
    ) -> tuple[dict[int, Chunk], dict[int, str], list[Candidate]]:
        """
        Merge chunk maps and primary hits across collections.

        On a hash present in several collections the better-scoring hit
        wins; disabled chunks, chunks hidden by their conditions and hits
        without stored metadata are dropped.
        """
        convention = self.config.retrieval.score_convention
        chunks: dict[int, Chunk] = {}
        owners: dict[int, str] = {}

        for collection in collections:
            for chunk_hash, chunk in visible[collection.id].items():
                if chunk_hash not in chunks:
                    chunks[chunk_hash] = chunk
                    owners[chunk_hash] = collection.id

        primary: dict[int, Candidate] = {}
        for collection in collections:
            for hit in hits.get(collection.id, []):
                chunk = collection.get(hit.hash)
                if chunk is None:
                    logger.debug(f"{RETRIEVER} Dropping hit: {MissingChunkMetadataError(hit.hash, collection.id)}")
                    continue
                if chunk.disabled or hit.hash not in visible[collection.id]:
                    continue

                score = normalize_score(hit.score, convention)
                existing = primary.get(hit.hash)
                if existing is not None and existing.base_score >= score:
                    continue

                candidate = Candidate(
                    hash=chunk.hash,
                    text=chunk.text,
                    base_score=score,
                    collection_id=collection.id,
                )
                candidate.add_provenance(
                    "vector", collection_id=collection.id, score=score
                )
                primary[hit.hash] = candidate
                chunks[hit.hash] = chunk
                owners[hit.hash] = collection.id

        ordered = sorted(primary.values(), key=lambda c: (-c.base_score, c.hash))
        logger.debug(
            f"{PIPELINE} Merge: {len(chunks)} chunks known, {len(ordered)} primary candidates"
        )
        return chunks, owners, ordered


def retrieve(
    query_text: str,
    scope_context: Optional[ScopeContext],
    store: CollectionStore,
    vector_client: VectorSimilarityClient,
    config: Optional[LoreRankConfig] = None,
    cancel: Optional[threading.Event] = None,
) -> list[RankedResult]:
    """Convenience wrapper building a one-off MultiCollectionRetriever."""
    retriever = MultiCollectionRetriever(store, vector_client, config)
    return retriever.retrieve(query_text, scope_context, cancel=cancel)


def _cancelled(cancel: Optional[threading.Event]) -> bool:
    return cancel is not None and cancel.is_set()


__all__ = ["MultiCollectionRetriever", "build_steps", "retrieve"]
