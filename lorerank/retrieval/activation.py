# lorerank/retrieval/activation.py
"""
Activation gate - decides which collections are queried at all.

A collection activates when it is enabled and any of:
    - it is flagged ``always_active``
    - its ``conditions`` are enabled, carry rules, and evaluate true
    - one of its ``activation_triggers`` occurs in the lowercased query

A collection with no triggers, no always-active flag and no live
conditions never activates.

Chunks carry the same kind of rule set. Per-chunk conditions work the other
way round: a chunk without live conditions is always visible, and one whose
conditions evaluate false is hidden from the query.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from lorerank.core.chunk import ActivationConditions, Chunk, Collection, ConditionRule
from lorerank.core.context import ScopeContext
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import ACTIVATION

from .emotions import EMOTION_KEYWORDS

logger = get_logger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

RuleEvaluator = Callable[[ConditionRule, str, ScopeContext], bool]


def _snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


def _setting(rule: ConditionRule, key: str, default: Any = None) -> Any:
    """Read a rule setting by snake_case key, accepting the camelCase spelling."""
    settings = {_snake(k): v for k, v in rule.settings.items()}
    return settings.get(key, default)


def _values(rule: ConditionRule) -> list[str]:
    values = _setting(rule, "values")
    if values is None:
        value = _setting(rule, "value")
        values = [value] if value is not None else []
    if isinstance(values, str):
        values = [values]
    return [str(v) for v in values]


def _compare(current: int, rule: ConditionRule) -> bool:
    count = int(_setting(rule, "count", 0) or 0)
    operator = str(_setting(rule, "operator", "gte")).lower()
    upper = int(_setting(rule, "upper_bound", 0) or 0)

    if operator == "eq":
        return current == count
    if operator == "lte":
        return current <= count
    if operator == "between":
        return count <= current <= upper
    return current >= count


# =============================================================================
# Rule evaluators
# =============================================================================


def _keyword(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    case_sensitive = bool(_setting(rule, "case_sensitive", False))
    mode = _snake(str(_setting(rule, "match_mode", "contains")))
    haystack = " ".join([*ctx.recent_messages, query])
    if not case_sensitive:
        haystack = haystack.lower()

    for raw in _values(rule):
        keyword = raw if case_sensitive else raw.lower()
        if not keyword:
            continue
        if mode == "exact":
            flags = 0 if case_sensitive else re.IGNORECASE
            if re.search(rf"\b{re.escape(keyword)}\b", haystack, flags):
                return True
        elif mode == "starts_with":
            if haystack.startswith(keyword):
                return True
        elif mode == "ends_with":
            if haystack.endswith(keyword):
                return True
        elif keyword in haystack:
            return True
    return False


def _speaker(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    targets = _values(rule)
    if str(_setting(rule, "match_type", "any")).lower() == "all":
        return all(t in ctx.message_speakers for t in targets)
    return ctx.last_speaker in targets


def _character_present(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    speakers = [s.lower() for s in ctx.message_speakers if s]

    def present(name: str) -> bool:
        return any(name.lower() in s for s in speakers)

    targets = _values(rule)
    if str(_setting(rule, "match_type", "any")).lower() == "all":
        return all(present(t) for t in targets)
    return any(present(t) for t in targets)


def _message_count(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    return _compare(ctx.message_count, rule)


def _swipe_count(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    return _compare(ctx.swipe_count, rule)


def _generation_type(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    current = (ctx.generation_type or "normal").lower()
    targets = [t.lower() for t in _values(rule)] or ["normal"]
    if str(_setting(rule, "match_type", "any")).lower() == "all":
        return all(t == current for t in targets)
    return current in targets


def _is_group_chat(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    expected = _setting(rule, "is_group", True)
    return ctx.is_group_chat == (expected is not False)


def _chunk_active(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    match_by = str(_setting(rule, "match_by", "hash")).lower()
    for target in _values(rule):
        if match_by == "hash":
            try:
                target_hash = int(target)
            except ValueError:
                continue
            if any(c.hash == target_hash for c in ctx.active_chunks):
                return True
        elif match_by == "section":
            if any(c.section == target for c in ctx.active_chunks):
                return True
        elif match_by == "topic":
            if any(c.topic == target for c in ctx.active_chunks):
                return True
    return False


def _minutes(clock: str) -> int:
    hours, minutes = clock.split(":")
    return int(hours) * 60 + int(minutes)


def _time_of_day(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    try:
        start = _minutes(str(_setting(rule, "start_time", "00:00") or "00:00"))
        end = _minutes(str(_setting(rule, "end_time", "23:59") or "23:59"))
    except ValueError:
        logger.warning(f"{ACTIVATION} Invalid time_of_day format: {rule.settings!r}")
        return False

    now = ctx.now or datetime.now()
    current = now.hour * 60 + now.minute
    if start <= end:
        return start <= current <= end
    # window crosses midnight, e.g. 22:00-02:00
    return current >= start or current <= end


def _emotion(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    targets = [t.lower() for t in _values(rule) if t]
    if not targets:
        logger.warning(f"{ACTIVATION} Emotion condition has no target emotions")
        return False

    method = str(_setting(rule, "detection_method", "auto")).lower()
    if method != "keywords" and ctx.current_emotion:
        if ctx.current_emotion.lower() in targets:
            return True

    if method == "expressions":
        return False
    text = " ".join([*ctx.recent_messages, query]).lower()
    return any(
        any(word in text for word in EMOTION_KEYWORDS.get(target, ())) for target in targets
    )


def _lorebook_active(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    entries = [(e.key.lower(), str(e.uid).lower()) for e in ctx.active_lorebook_entries]

    def active(target: str) -> bool:
        target = target.lower()
        return any(target in key or target == uid for key, uid in entries)

    targets = [t for t in _values(rule) if t]
    if str(_setting(rule, "match_type", "any")).lower() == "all":
        return all(active(t) for t in targets)
    return any(active(t) for t in targets)


RULE_EVALUATORS: dict[str, RuleEvaluator] = {
    "keyword": _keyword,
    "speaker": _speaker,
    "character_present": _character_present,
    "message_count": _message_count,
    "swipe_count": _swipe_count,
    "generation_type": _generation_type,
    "is_group_chat": _is_group_chat,
    "chunk_active": _chunk_active,
    "time_of_day": _time_of_day,
    "emotion": _emotion,
    "lorebook_active": _lorebook_active,
}


# =============================================================================
# Public API
# =============================================================================


def evaluate_rule(rule: ConditionRule, query: str, ctx: ScopeContext) -> bool:
    """Evaluate one rule; unknown rule types evaluate false."""
    evaluator = RULE_EVALUATORS.get(_snake(rule.type))
    if evaluator is None:
        logger.warning(f"{ACTIVATION} Unknown condition type: {rule.type!r}")
        result = False
    else:
        result = evaluator(rule, query, ctx)
    return not result if rule.negate else result


def conditions_met(
    conditions: Optional[ActivationConditions], query: str, ctx: ScopeContext
) -> bool:
    """
    True when ``conditions`` are enabled, have rules, and hold.

    Missing, disabled or empty condition sets never activate a collection
    on their own.
    """
    if conditions is None or not conditions.enabled or not conditions.rules:
        return False
    return _evaluate(conditions, query, ctx)


def _evaluate(conditions: ActivationConditions, query: str, ctx: ScopeContext) -> bool:
    results = [evaluate_rule(rule, query, ctx) for rule in conditions.rules]
    if conditions.logic == "OR":
        return any(results)
    return all(results)


def chunk_conditions_met(chunk: Chunk, query: str, ctx: ScopeContext) -> bool:
    """
    True unless the chunk's own conditions are live and evaluate false.

    A chunk with missing, disabled or empty conditions is always visible.
    """
    conditions = chunk.conditions
    if conditions is None or not conditions.enabled or not conditions.rules:
        return True
    return _evaluate(conditions, query, ctx)


def filter_chunks(
    chunks: Iterable[Chunk], query: str, ctx: Optional[ScopeContext] = None
) -> list[Chunk]:
    """Keep the chunks whose per-chunk conditions hold for this query."""
    ctx = ctx or ScopeContext()
    all_chunks = list(chunks)
    visible = [c for c in all_chunks if chunk_conditions_met(c, query, ctx)]
    if len(visible) != len(all_chunks):
        logger.debug(
            f"{ACTIVATION} Chunk conditions hid {len(all_chunks) - len(visible)}"
            f"/{len(all_chunks)} chunks"
        )
    return visible


def is_active(collection: Collection, query: str, ctx: Optional[ScopeContext] = None) -> bool:
    ctx = ctx or ScopeContext()
    if not collection.enabled:
        return False
    if collection.always_active:
        return True
    if conditions_met(collection.conditions, query, ctx):
        return True
    lowered = query.lower()
    return any(t and t.lower() in lowered for t in collection.activation_triggers)


def activated_collections(
    collections: Iterable[Collection],
    query: str,
    ctx: Optional[ScopeContext] = None,
) -> list[Collection]:
    """Filter ``collections`` down to the ones the gate lets through."""
    ctx = ctx or ScopeContext()
    all_collections = list(collections)
    active = [c for c in all_collections if is_active(c, query, ctx)]
    logger.debug(
        f"{ACTIVATION} {len(active)}/{len(all_collections)} collections activated: "
        f"{[c.id for c in active]}"
    )
    return active


__all__ = [
    "RULE_EVALUATORS",
    "evaluate_rule",
    "conditions_met",
    "chunk_conditions_met",
    "filter_chunks",
    "is_active",
    "activated_collections",
]
