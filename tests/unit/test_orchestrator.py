# tests/unit/test_orchestrator.py
"""
Tests for the Multi-Collection Orchestrator.

Tests cover:
1. End-to-end ranking with keyword fallback, links and inclusion groups
2. Ranking invariants - determinism, top-K bound, no disabled chunks
3. Fan-out - unavailable collections, missing metadata, score merge
4. Per-chunk conditions and temporal decay
5. Cancellation and empty inputs
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

import pytest

from lorerank.config.loader import load_config
from lorerank.core.chunk import (
    ActivationConditions,
    Chunk,
    ChunkGroup,
    ChunkLink,
    Collection,
    ConditionRule,
    LinkMode,
)
from lorerank.core.context import ScopeContext
from lorerank.core.exceptions import CollectionUnavailableError
from lorerank.retrieval.orchestrator import MultiCollectionRetriever, build_steps, retrieve
from lorerank.storage.base import InMemoryCollectionStore
from lorerank.vector_db.base import NullVectorClient, VectorHit

# ---------------------------------------------------------------------------
# Test Fixtures
# ---------------------------------------------------------------------------


@dataclass
class FakeVectorClient:
    """Vector service returning canned hits per collection."""

    hits: dict = field(default_factory=dict)
    unavailable: set = field(default_factory=set)
    broken: set = field(default_factory=set)
    calls: list = field(default_factory=list)

    def query(self, collection_id, text, top_k, threshold=0.0):
        self.calls.append((collection_id, text, top_k, threshold))
        if collection_id in self.unavailable:
            raise CollectionUnavailableError(collection_id, "HTTP 503", status_code=503)
        if collection_id in self.broken:
            raise RuntimeError("connection reset")
        return [VectorHit(hash=h, score=s) for h, s in self.hits.get(collection_id, [])]

    def insert(self, collection_id, chunks):
        return None

    def delete(self, collection_id, hashes):
        return None

    def list_hashes(self, collection_id):
        return []


def dragon_chunk(chunk_hash: int, **kwargs) -> Chunk:
    return Chunk(
        hash=chunk_hash,
        text=f"dragon lore {chunk_hash}",
        system_keywords=["dragon"],
        custom_weights={"dragon": 100},
        **kwargs,
    )


def result_hashes(results) -> list[int]:
    return [r.hash for r in results]


# ---------------------------------------------------------------------------
# End-to-end ranking
# ---------------------------------------------------------------------------


class TestRetrieveRanking:
    """Tests for the full post-fan-out pipeline."""

    def test_fallback_with_prioritized_inclusion_group(self, make_store):
        store = make_store(
            [
                dragon_chunk(30),
                dragon_chunk(10, inclusion_group="myth"),
                dragon_chunk(20, inclusion_group="myth", inclusion_prioritize=True),
            ]
        )
        config = load_config(overrides={"fallback": {"limit": 2}})

        results = retrieve("a dragon appears", ScopeContext(), store, NullVectorClient(), config)

        assert result_hashes(results) == [20]
        assert results[0].inferred is True
        assert results[0].final_score == 1.0
        assert results[0].collection_id == "lore"

    def test_force_link_to_disabled_chunk(self, make_store):
        store = make_store(
            [
                Chunk(hash=1, text="a", chunk_links=[ChunkLink(target_hash=4, mode=LinkMode.FORCE)]),
                Chunk(hash=4, text="d", disabled=True),
            ]
        )
        vector = FakeVectorClient(hits={"lore": [(1, 0.9), (4, 0.95)]})

        results = MultiCollectionRetriever(store, vector).retrieve("query", ScopeContext())

        assert result_hashes(results) == [1]

    def test_force_link_closure(self, make_store):
        store = make_store(
            [
                Chunk(hash=1, text="a", chunk_links=[ChunkLink(target_hash=2, mode=LinkMode.FORCE)]),
                Chunk(hash=2, text="b", chunk_links=[ChunkLink(target_hash=3, mode=LinkMode.FORCE)]),
                Chunk(hash=3, text="c"),
            ]
        )
        vector = FakeVectorClient(hits={"lore": [(1, 0.9)]})

        results = MultiCollectionRetriever(store, vector).retrieve("query", ScopeContext())

        assert set(result_hashes(results)) == {1, 2, 3}
        assert [r.inferred for r in results if r.hash != 1] == [True, True]

    def test_required_group_member_force_links_followed(self, make_store):
        wolves = ChunkGroup(name="wolves", group_keywords=["wolf"], requires_group_member=True)
        store = make_store(
            [
                Chunk(hash=1, text="a"),
                Chunk(
                    hash=2,
                    text="b",
                    chunk_group=wolves,
                    chunk_links=[ChunkLink(target_hash=3, mode=LinkMode.FORCE)],
                ),
                Chunk(hash=3, text="c"),
            ]
        )
        vector = FakeVectorClient(hits={"lore": [(1, 0.9)]})

        results = MultiCollectionRetriever(store, vector).retrieve("the wolf howls", ScopeContext())

        assert result_hashes(results) == [1, 2, 3]
        assert results[2].provenance[0].source_hash == 2

    def test_soft_link_boost(self, make_store):
        store = make_store(
            [
                Chunk(hash=1, text="a", chunk_links=[ChunkLink(target_hash=2, mode=LinkMode.SOFT)]),
                Chunk(hash=2, text="b"),
            ]
        )
        vector = FakeVectorClient(hits={"lore": [(1, 0.5), (2, 0.5)]})

        results = MultiCollectionRetriever(store, vector).retrieve("query", ScopeContext())

        assert result_hashes(results) == [2, 1]
        assert results[0].final_score == pytest.approx(0.65)

    def test_provenance_explains_results(self, make_store):
        store = make_store([Chunk(hash=1, text="a")])
        vector = FakeVectorClient(hits={"lore": [(1, 0.9)]})

        (result,) = MultiCollectionRetriever(store, vector).retrieve("query", ScopeContext())

        assert result.inferred is False
        assert result.provenance[0].mechanism == "vector"
        assert result.provenance[0].collection_id == "lore"


# ---------------------------------------------------------------------------
# Ranking invariants
# ---------------------------------------------------------------------------


class TestRetrieveInvariants:
    """Tests for properties every result list must satisfy."""

    def _store(self, make_store):
        chunks = [dragon_chunk(h) for h in range(1, 13)]
        chunks.append(dragon_chunk(50, disabled=True))
        chunks.append(dragon_chunk(60, inclusion_group="g"))
        chunks.append(dragon_chunk(61, inclusion_group="g"))
        return make_store(chunks)

    def _vector(self) -> FakeVectorClient:
        return FakeVectorClient(
            hits={"lore": [(50, 0.99), (3, 0.7), (60, 0.6), (61, 0.65), (7, 0.4)]}
        )

    def test_deterministic(self, make_store):
        store = self._store(make_store)
        retriever = MultiCollectionRetriever(store, self._vector())

        first = retriever.retrieve("a dragon appears", ScopeContext())
        second = retriever.retrieve("a dragon appears", ScopeContext())

        assert first == second

    def test_top_k_bound(self, make_store):
        store = self._store(make_store)

        for k in (1, 3, 8):
            config = load_config(overrides={"retrieval": {"top_k": k}})
            results = MultiCollectionRetriever(store, self._vector(), config).retrieve(
                "a dragon appears", ScopeContext()
            )
            assert len(results) <= k

    def test_no_disabled_chunks(self, make_store):
        store = self._store(make_store)

        results = MultiCollectionRetriever(store, self._vector()).retrieve(
            "a dragon appears", ScopeContext()
        )

        assert 50 not in result_hashes(results)

    def test_inclusion_group_exclusive(self, make_store):
        store = self._store(make_store)
        config = load_config(overrides={"retrieval": {"top_k": 20}})

        results = MultiCollectionRetriever(store, self._vector(), config).retrieve(
            "a dragon appears", ScopeContext()
        )

        assert len({60, 61} & set(result_hashes(results))) == 1

    def test_sorted_by_final_score(self, make_store):
        store = self._store(make_store)

        results = MultiCollectionRetriever(store, self._vector()).retrieve(
            "a dragon appears", ScopeContext()
        )

        scores = [r.final_score for r in results]
        assert scores == sorted(scores, reverse=True)


# ---------------------------------------------------------------------------
# Fan-out and merge
# ---------------------------------------------------------------------------


class TestFanOut:
    """Tests for multi-collection fan-out and merge."""

    def _two_collections(self) -> InMemoryCollectionStore:
        return InMemoryCollectionStore(
            [
                Collection(id="a", always_active=True, chunks=[Chunk(hash=1, text="one")]),
                Collection(id="b", always_active=True, chunks=[Chunk(hash=2, text="two")]),
            ]
        )

    def test_unavailable_collection_degrades(self, caplog):
        vector = FakeVectorClient(hits={"a": [(1, 0.9)], "b": [(2, 0.8)]}, unavailable={"a"})

        with caplog.at_level(logging.WARNING):
            results = MultiCollectionRetriever(self._two_collections(), vector).retrieve(
                "query", ScopeContext()
            )

        assert result_hashes(results) == [2]
        assert "Skipping collection" in caplog.text

    def test_unexpected_error_degrades(self):
        vector = FakeVectorClient(hits={"a": [(1, 0.9)], "b": [(2, 0.8)]}, broken={"b"})

        results = MultiCollectionRetriever(self._two_collections(), vector).retrieve(
            "query", ScopeContext()
        )

        assert result_hashes(results) == [1]

    def test_hit_without_metadata_dropped(self, make_store):
        store = make_store([Chunk(hash=1, text="a")])
        vector = FakeVectorClient(hits={"lore": [(999, 0.99), (1, 0.5)]})

        results = MultiCollectionRetriever(store, vector).retrieve("query", ScopeContext())

        assert result_hashes(results) == [1]

    def test_duplicate_hash_keeps_better_score(self):
        store = InMemoryCollectionStore(
            [
                Collection(id="a", always_active=True, chunks=[Chunk(hash=1, text="from a")]),
                Collection(id="b", always_active=True, chunks=[Chunk(hash=1, text="from b")]),
            ]
        )
        vector = FakeVectorClient(hits={"a": [(1, 0.4)], "b": [(1, 0.9)]})

        (result,) = MultiCollectionRetriever(store, vector).retrieve("query", ScopeContext())

        assert result.final_score == 0.9
        assert result.collection_id == "b"
        assert result.text == "from b"

    def test_global_cap_applied_after_fusion(self):
        early = [Chunk(hash=h, text=f"early {h}") for h in range(100, 110)]
        store = InMemoryCollectionStore(
            [
                Collection(id="early", always_active=True, chunks=early),
                Collection(id="late", always_active=True, chunks=[Chunk(hash=500, text="late")]),
            ]
        )
        vector = FakeVectorClient(
            hits={"early": [(c.hash, 0.3) for c in early], "late": [(500, 0.95)]}
        )
        config = load_config(overrides={"retrieval": {"top_k": 3}})

        results = MultiCollectionRetriever(store, vector, config).retrieve("query", ScopeContext())

        assert result_hashes(results) == [500, 100, 101]
        assert {call[2] for call in vector.calls} == {10}

    def test_score_convention(self, make_store):
        store = make_store([Chunk(hash=1, text="a")])
        vector = FakeVectorClient(hits={"lore": [(1, 0.25)]})
        config = load_config(overrides={"retrieval": {"score_convention": "cosine_distance"}})

        (result,) = MultiCollectionRetriever(store, vector, config).retrieve("query", ScopeContext())

        assert result.final_score == 0.75

    def test_scope_filtering(self):
        store = InMemoryCollectionStore(
            [
                Collection(id="world", scope="global", always_active=True),
                Collection(id="alice", scope="character:alice", always_active=True),
            ]
        )
        vector = FakeVectorClient()

        MultiCollectionRetriever(store, vector).retrieve("query", ScopeContext(scopes=["global"]))

        assert [call[0] for call in vector.calls] == ["world"]


# ---------------------------------------------------------------------------
# Per-chunk conditions and temporal decay
# ---------------------------------------------------------------------------


def group_only() -> ActivationConditions:
    return ActivationConditions(rules=[ConditionRule(type="isGroupChat")])


class TestChunkConditionsAndDecay:
    """Tests for condition-hidden chunks and decay of chat chunks."""

    def conditional_store(self, make_store):
        return make_store(
            [
                Chunk(hash=1, text="a", conditions=group_only()),
                Chunk(hash=2, text="b"),
                Chunk(hash=3, text="c", chunk_links=[ChunkLink(target_hash=4, mode=LinkMode.FORCE)]),
                Chunk(hash=4, text="d", conditions=group_only()),
            ]
        )

    def test_hidden_chunks_dropped_from_hits_and_links(self, make_store):
        vector = FakeVectorClient(hits={"lore": [(1, 0.9), (2, 0.8), (3, 0.7)]})
        retriever = MultiCollectionRetriever(self.conditional_store(make_store), vector)

        assert result_hashes(retriever.retrieve("query", ScopeContext())) == [2, 3]
        assert result_hashes(retriever.retrieve("query", ScopeContext(is_group_chat=True))) == [
            1,
            2,
            3,
            4,
        ]

    def test_chunk_conditions_can_be_switched_off(self, make_store):
        vector = FakeVectorClient(hits={"lore": [(1, 0.9), (2, 0.8), (3, 0.7)]})
        config = load_config(overrides={"chunk_conditions": {"enabled": False}})
        retriever = MultiCollectionRetriever(self.conditional_store(make_store), vector, config)

        assert result_hashes(retriever.retrieve("query", ScopeContext())) == [1, 2, 3, 4]

    def test_decay_reorders_old_chat_chunks(self, make_store):
        store = make_store(
            [
                Chunk(hash=1, text="old", message_id=0),
                Chunk(hash=2, text="new", message_id=100),
                Chunk(hash=3, text="pinned", message_id=0, temporally_blind=True),
            ]
        )
        vector = FakeVectorClient(hits={"lore": [(1, 0.9), (2, 0.6), (3, 0.5)]})
        config = load_config(overrides={"decay": {"enabled": True, "half_life": 50}})
        retriever = MultiCollectionRetriever(store, vector, config)

        results = retriever.retrieve("query", ScopeContext(current_message_id=100))

        assert result_hashes(results) == [2, 3, 1]
        assert results[2].final_score == pytest.approx(0.9 * 0.3)
        assert results[2].provenance[-1].mechanism == "temporal_decay"

        results = retriever.retrieve("query", ScopeContext())

        assert result_hashes(results) == [1, 2, 3]


# ---------------------------------------------------------------------------
# Empty inputs and cancellation
# ---------------------------------------------------------------------------


class TestRetrieveEdgeCases:
    """Tests for empty queries, inactive collections and cancellation."""

    def test_empty_query(self, make_store):
        vector = FakeVectorClient()
        retriever = MultiCollectionRetriever(make_store([dragon_chunk(1)]), vector)

        assert retriever.retrieve("", ScopeContext()) == []
        assert retriever.retrieve("   ", ScopeContext()) == []
        assert vector.calls == []

    def test_no_active_collections(self, make_store):
        vector = FakeVectorClient()
        store = make_store([dragon_chunk(1)], always_active=False, activation_triggers=["elf"])

        assert MultiCollectionRetriever(store, vector).retrieve("a dragon", ScopeContext()) == []
        assert vector.calls == []

    def test_cancelled_query(self, make_store):
        cancel = threading.Event()
        cancel.set()
        vector = FakeVectorClient()

        results = MultiCollectionRetriever(make_store([dragon_chunk(1)]), vector).retrieve(
            "a dragon", ScopeContext(), cancel=cancel
        )

        assert results == []
        assert vector.calls == []

    def test_default_scope_context(self, make_store):
        results = MultiCollectionRetriever(make_store([dragon_chunk(1)]), NullVectorClient()).retrieve(
            "a dragon"
        )

        assert result_hashes(results) == [1]


class TestBuildSteps:
    """Tests for pipeline assembly from config."""

    def test_default_order(self):
        names = [s.name for s in build_steps(load_config())]

        assert names == [
            "CrosslinkStep",
            "KeywordFallbackStep",
            "LinkResolveStep",
            "GroupExpandStep",
            "InclusionFilterStep",
            "ScoreFuseStep",
            "LimitStep",
        ]

    def test_disabled_stages(self):
        config = load_config(
            overrides={
                "crosslink": {"enabled": False},
                "fallback": {"enabled": False},
                "groups": {"enabled": False},
            }
        )

        names = [s.name for s in build_steps(config)]

        assert names == ["LinkResolveStep", "InclusionFilterStep", "ScoreFuseStep", "LimitStep"]
