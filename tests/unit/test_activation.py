# tests/unit/test_activation.py
"""Tests for the collection activation gate and condition rules."""

from __future__ import annotations

import logging
from datetime import datetime

import pytest

from lorerank.core.chunk import ActivationConditions, Chunk, Collection, ConditionRule
from lorerank.core.context import ActiveChunk, LorebookEntry, ScopeContext
from lorerank.retrieval.activation import (
    activated_collections,
    chunk_conditions_met,
    conditions_met,
    evaluate_rule,
    filter_chunks,
    is_active,
)


def rule(rule_type: str, negate: bool = False, **settings) -> ConditionRule:
    return ConditionRule(type=rule_type, negate=negate, settings=settings)


def conditions(*rules: ConditionRule, logic: str = "AND", enabled: bool = True):
    return ActivationConditions(enabled=enabled, logic=logic, rules=list(rules))


class TestIsActive:
    """Tests for the activation gate."""

    def test_always_active(self):
        assert is_active(Collection(id="c", always_active=True), "anything")

    def test_disabled_collection_never_active(self):
        collection = Collection(id="c", always_active=True, enabled=False)

        assert not is_active(collection, "anything")

    def test_trigger_substring_case_insensitive(self):
        collection = Collection(id="c", activation_triggers=["dragon"])

        assert is_active(collection, "A DRAGON appears")
        assert is_active(collection, "dragonborn")
        assert not is_active(collection, "a quiet tavern")

    def test_no_triggers_no_conditions(self):
        assert not is_active(Collection(id="c"), "a dragon appears")

    def test_conditions_activate(self):
        collection = Collection(
            id="c", conditions=conditions(rule("message_count", count=5, operator="gte"))
        )

        assert is_active(collection, "q", ScopeContext(message_count=6))
        assert not is_active(collection, "q", ScopeContext(message_count=2))

    def test_activated_collections_keeps_order(self):
        collections = [
            Collection(id="b", always_active=True),
            Collection(id="a", activation_triggers=["elf"]),
            Collection(id="c", always_active=True),
        ]

        active = activated_collections(collections, "no match")

        assert [c.id for c in active] == ["b", "c"]


class TestConditionsMet:
    """Tests for condition sets."""

    def test_missing_disabled_or_empty(self):
        ctx = ScopeContext()
        passing = rule("message_count", count=0)

        assert not conditions_met(None, "q", ctx)
        assert not conditions_met(conditions(passing, enabled=False), "q", ctx)
        assert not conditions_met(conditions(), "q", ctx)
        assert conditions_met(conditions(passing), "q", ctx)

    def test_and_logic(self):
        ctx = ScopeContext(message_count=10, swipe_count=0)
        rules = [rule("message_count", count=5), rule("swipe_count", count=1)]

        assert not conditions_met(conditions(*rules), "q", ctx)

    def test_or_logic(self):
        ctx = ScopeContext(message_count=10, swipe_count=0)
        rules = [rule("message_count", count=5), rule("swipe_count", count=1)]

        assert conditions_met(conditions(*rules, logic="or"), "q", ctx)


class TestRules:
    """Tests for the individual rule evaluators."""

    def test_keyword_contains_query_and_messages(self):
        ctx = ScopeContext(recent_messages=["The Oracle speaks."])

        assert evaluate_rule(rule("keyword", values=["oracle"]), "q", ctx)
        assert evaluate_rule(rule("keyword", value="dragon"), "a Dragon!", ScopeContext())
        assert not evaluate_rule(rule("keyword", values=["elf"]), "q", ctx)

    def test_keyword_exact(self):
        exact = rule("keyword", values=["dragon"], matchMode="exact")

        assert evaluate_rule(exact, "a dragon appears", ScopeContext())
        assert not evaluate_rule(exact, "the dragonborn", ScopeContext())

    def test_keyword_case_sensitive(self):
        sensitive = rule("keyword", values=["Dragon"], case_sensitive=True)

        assert evaluate_rule(sensitive, "a Dragon", ScopeContext())
        assert not evaluate_rule(sensitive, "a dragon", ScopeContext())

    def test_speaker(self):
        ctx = ScopeContext(last_speaker="Alice", message_speakers=["Alice", "Bob"])

        assert evaluate_rule(rule("speaker", values=["Alice"]), "q", ctx)
        assert not evaluate_rule(rule("speaker", values=["Bob"]), "q", ctx)
        assert evaluate_rule(rule("speaker", values=["Alice", "Bob"], match_type="all"), "q", ctx)

    def test_character_present(self):
        ctx = ScopeContext(message_speakers=["Alice the Bold"])

        assert evaluate_rule(rule("character_present", values=["alice"]), "q", ctx)
        assert not evaluate_rule(
            rule("character_present", values=["alice", "bob"], match_type="all"), "q", ctx
        )

    @pytest.mark.parametrize(
        "settings,count,expected",
        [
            ({"count": 3, "operator": "eq"}, 3, True),
            ({"count": 3, "operator": "eq"}, 4, False),
            ({"count": 3, "operator": "lte"}, 2, True),
            ({"count": 3, "operator": "gte"}, 2, False),
            ({"count": 2, "operator": "between", "upperBound": 4}, 4, True),
            ({"count": 2, "operator": "between", "upperBound": 4}, 5, False),
        ],
    )
    def test_swipe_count(self, settings, count, expected):
        ctx = ScopeContext(swipe_count=count)

        assert evaluate_rule(rule("swipe_count", **settings), "q", ctx) is expected

    def test_camel_case_rule_type(self):
        ctx = ScopeContext(message_count=7)

        assert evaluate_rule(rule("messageCount", count=5), "q", ctx)

    def test_generation_type(self):
        ctx = ScopeContext(generation_type="swipe")

        assert evaluate_rule(rule("generation_type", values=["swipe", "regenerate"]), "q", ctx)
        assert not evaluate_rule(rule("generation_type"), "q", ctx)

    def test_is_group_chat(self):
        group = ScopeContext(is_group_chat=True)

        assert evaluate_rule(rule("is_group_chat"), "q", group)
        assert not evaluate_rule(rule("is_group_chat", is_group=False), "q", group)

    def test_negate(self):
        assert not evaluate_rule(rule("is_group_chat", negate=True), "q", ScopeContext(is_group_chat=True))

    def test_unknown_type_is_false(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert not evaluate_rule(rule("moon_phase"), "q", ScopeContext())

        assert "Unknown condition type" in caplog.text

    def test_chunk_active(self):
        ctx = ScopeContext(active_chunks=[ActiveChunk(hash=42, section="Bestiary")])

        assert evaluate_rule(rule("chunkActive", values=["42"]), "q", ctx)
        assert not evaluate_rule(rule("chunk_active", values=["not-a-hash", "7"]), "q", ctx)
        assert evaluate_rule(rule("chunk_active", values=["Bestiary"], matchBy="section"), "q", ctx)
        assert not evaluate_rule(rule("chunk_active", values=["Bestiary"], match_by="topic"), "q", ctx)

    @pytest.mark.parametrize(
        "start,end,hour,minute,expected",
        [
            ("09:00", "17:00", 12, 0, True),
            ("09:00", "17:00", 17, 1, False),
            ("22:00", "02:00", 23, 30, True),
            ("22:00", "02:00", 1, 15, True),
            ("22:00", "02:00", 12, 0, False),
        ],
    )
    def test_time_of_day(self, start, end, hour, minute, expected):
        ctx = ScopeContext(now=datetime(2026, 3, 1, hour, minute))
        window = rule("timeOfDay", startTime=start, endTime=end)

        assert evaluate_rule(window, "q", ctx) is expected

    def test_time_of_day_invalid_format(self, caplog):
        ctx = ScopeContext(now=datetime(2026, 3, 1, 12, 0))

        with caplog.at_level(logging.WARNING):
            assert not evaluate_rule(rule("time_of_day", start_time="noon"), "q", ctx)

        assert "Invalid time_of_day format" in caplog.text

    def test_emotion_from_host_classifier(self):
        ctx = ScopeContext(current_emotion="Joy")

        assert evaluate_rule(rule("emotion", values=["joy"]), "q", ctx)
        assert not evaluate_rule(rule("emotion", values=["fear"], detectionMethod="expressions"), "q", ctx)

    def test_emotion_keyword_fallback(self):
        ctx = ScopeContext(current_emotion="anger", recent_messages=["She laughed at the bard."])

        assert evaluate_rule(rule("emotion", values=["joy"]), "q", ctx)
        assert not evaluate_rule(rule("emotion", values=["joy"], detection_method="expressions"), "q", ctx)
        assert not evaluate_rule(rule("emotion", values=["fear"]), "q", ctx)

    def test_emotion_keywords_mode_ignores_classifier(self):
        ctx = ScopeContext(current_emotion="joy", recent_messages=["The gate is closed."])

        assert not evaluate_rule(rule("emotion", values=["joy"], detection_method="keywords"), "q", ctx)

    def test_emotion_without_targets(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert not evaluate_rule(rule("emotion"), "q", ScopeContext(current_emotion="joy"))

        assert "no target emotions" in caplog.text

    def test_lorebook_active(self):
        ctx = ScopeContext(active_lorebook_entries=[LorebookEntry(key="Dragon Lair", uid=12)])

        assert evaluate_rule(rule("lorebookActive", values=["dragon"]), "q", ctx)
        assert evaluate_rule(rule("lorebook_active", values=["12"]), "q", ctx)
        assert evaluate_rule(rule("lorebook_active", values=["castle", "lair"]), "q", ctx)
        assert not evaluate_rule(
            rule("lorebook_active", values=["castle", "lair"], match_type="all"), "q", ctx
        )


class TestChunkConditions:
    """Tests for per-chunk conditions."""

    def test_missing_disabled_or_empty_keep_chunk(self):
        failing = rule("is_group_chat")

        assert chunk_conditions_met(Chunk(hash=1, text="a"), "q", ScopeContext())
        assert chunk_conditions_met(
            Chunk(hash=1, text="a", conditions=conditions(failing, enabled=False)), "q", ScopeContext()
        )
        assert chunk_conditions_met(Chunk(hash=1, text="a", conditions=conditions()), "q", ScopeContext())

    def test_failing_conditions_hide_chunk(self):
        chunk = Chunk(hash=1, text="a", conditions=conditions(rule("is_group_chat")))

        assert not chunk_conditions_met(chunk, "q", ScopeContext())
        assert chunk_conditions_met(chunk, "q", ScopeContext(is_group_chat=True))

    def test_filter_chunks(self):
        chunks = [
            Chunk(hash=1, text="a"),
            Chunk(hash=2, text="b", conditions=conditions(rule("keyword", values=["oracle"]))),
            Chunk(
                hash=3,
                text="c",
                conditions=conditions(
                    rule("keyword", values=["oracle"]), rule("is_group_chat"), logic="OR"
                ),
            ),
        ]

        assert [c.hash for c in filter_chunks(chunks, "the oracle")] == [1, 2, 3]
        assert [c.hash for c in filter_chunks(chunks, "a tavern")] == [1]
        assert [c.hash for c in filter_chunks(chunks, "a tavern", ScopeContext(is_group_chat=True))] == [1, 3]
