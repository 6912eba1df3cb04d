# lorerank/core/chunk.py
"""
Chunk and Collection - the data model every lorerank stage works on.

A Chunk is immutable content (hash + text) plus mutable retrieval metadata:
keywords, weights, regex patterns, links and group membership. A Collection
is a named map of chunks belonging to one scope, plus the metadata that
decides whether it is queried at all.

Field names are snake_case; camelCase aliases are accepted so payloads
written by other tooling (``systemKeywords``, ``chunkLinks``...) validate.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_KEYWORD_WEIGHT = 1
MAX_KEYWORD_WEIGHT = 200


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Activation Conditions
# =============================================================================


class ConditionRule(_Model):
    """
    One activation rule.

    ``type`` is one of: keyword, speaker, character_present, message_count,
    swipe_count, generation_type, is_group_chat, chunk_active, time_of_day,
    emotion, lorebook_active (camelCase spellings are accepted). Rule-specific
    options live in ``settings``.
    """

    type: str
    negate: bool = False
    settings: Dict[str, Any] = Field(default_factory=dict)


class ActivationConditions(_Model):
    """Rule set deciding whether a collection (or a single chunk) activates."""

    enabled: bool = True
    logic: str = "AND"
    rules: List[ConditionRule] = Field(default_factory=list)

    @field_validator("logic", mode="before")
    @classmethod
    def _upper_logic(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


# =============================================================================
# Chunk Metadata
# =============================================================================


class LinkMode(str, Enum):
    """How a declared link affects its target."""

    FORCE = "force"
    SOFT = "soft"


class ChunkLink(_Model):
    """Directed link from the owning chunk to ``target_hash``."""

    target_hash: int
    mode: LinkMode = LinkMode.SOFT


class KeywordRegex(_Model):
    """
    Serialized regex variant attached to a chunk.

    ``source`` records where the pattern came from: ``family`` and ``phrase``
    are synthesized from keywords, ``domain`` comes from the section-header
    keyword-group table, ``custom`` is user-added. An unset ``priority``
    resolves at scoring time: 80 for synthesized patterns, 100 for user ones.
    """

    pattern: str
    flags: str = "i"
    priority: Optional[int] = Field(default=None, ge=MIN_KEYWORD_WEIGHT, le=MAX_KEYWORD_WEIGHT)
    source: str = "family"


class ChunkGroup(_Model):
    """Cooperative (non-exclusive) boosting group."""

    name: str = ""
    group_keywords: List[str] = Field(default_factory=list)
    requires_group_member: bool = False


class Chunk(_Model):
    """
    A retrievable unit of text plus its matching metadata.

    Keyword fields hold lowercase strings; matching always stem-normalizes
    before comparing (see lorerank.vocabulary.variations).

    ``conditions`` hide the chunk from a query when they evaluate false.
    ``message_id`` marks chunks vectorized from chat; only those are subject
    to temporal decay, and ``temporally_blind`` exempts them.
    """

    hash: int = Field(..., description="Stable identity, unique within a collection")
    text: str = Field(..., description="Literal fragment injected into the prompt")
    section: str = ""
    topic: str = ""
    tags: List[str] = Field(default_factory=list)

    system_keywords: List[str] = Field(default_factory=list)
    custom_keywords: List[str] = Field(default_factory=list)
    disabled_keywords: List[str] = Field(default_factory=list)
    custom_weights: Dict[str, int] = Field(default_factory=dict)
    keyword_regex: List[KeywordRegex] = Field(default_factory=list)
    custom_regex: List[KeywordRegex] = Field(default_factory=list)

    chunk_links: List[ChunkLink] = Field(default_factory=list)
    inclusion_group: Optional[str] = None
    inclusion_prioritize: bool = False
    chunk_group: Optional[ChunkGroup] = None

    disabled: bool = False
    importance: int = Field(default=100, ge=0, le=200)
    conditions: Optional[ActivationConditions] = None

    message_id: Optional[int] = Field(default=None, description="Chat message the chunk came from")
    temporally_blind: bool = False

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, v: Any) -> Any:
        if isinstance(v, (set, frozenset)):
            return sorted(v)
        if isinstance(v, list):
            return list(dict.fromkeys(v))
        return v

    @field_validator("system_keywords", "custom_keywords", "disabled_keywords", mode="before")
    @classmethod
    def _lowercase_keywords(cls, v: Any) -> Any:
        if isinstance(v, list):
            cleaned = [str(k).strip().lower() for k in v if k and str(k).strip()]
            return list(dict.fromkeys(cleaned))
        return v

    @field_validator("custom_weights", mode="before")
    @classmethod
    def _clamp_weights(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        return {
            str(k).strip().lower(): max(MIN_KEYWORD_WEIGHT, min(MAX_KEYWORD_WEIGHT, int(w)))
            for k, w in v.items()
        }

    @field_validator("inclusion_group", mode="before")
    @classmethod
    def _blank_group_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("chunk_group", mode="before")
    @classmethod
    def _blank_chunk_group_is_none(cls, v: Any) -> Any:
        if isinstance(v, dict) and not (v.get("name") or "").strip():
            return None
        return v

    @property
    def keywords(self) -> List[str]:
        """System keywords followed by custom keywords, deduplicated."""
        return list(dict.fromkeys([*self.system_keywords, *self.custom_keywords]))

    def is_custom_keyword(self, keyword: str) -> bool:
        return keyword.lower() in self.custom_keywords


# =============================================================================
# Collection
# =============================================================================


class Collection(_Model):
    """
    A named map of chunks belonging to one scope.

    ``chunks`` accepts either a mapping ``{hash: chunk}`` or a plain list of
    chunks; lists are keyed by each chunk's hash.
    """

    id: str
    scope: str = "global"
    chunks: Dict[int, Chunk] = Field(default_factory=dict)
    activation_triggers: List[str] = Field(default_factory=list)
    always_active: bool = False
    enabled: bool = True
    conditions: Optional[ActivationConditions] = None

    @field_validator("chunks", mode="before")
    @classmethod
    def _list_to_map(cls, v: Any) -> Any:
        if isinstance(v, list):
            mapped: Dict[int, Any] = {}
            for item in v:
                if isinstance(item, Chunk):
                    key = item.hash
                elif isinstance(item, dict) and item.get("hash") is not None:
                    key = int(item["hash"])
                else:
                    raise ValueError("every chunk needs a hash")
                mapped[key] = item
            return mapped
        return v

    def get(self, chunk_hash: int) -> Optional[Chunk]:
        return self.chunks.get(chunk_hash)


__all__ = [
    "LinkMode",
    "ChunkLink",
    "KeywordRegex",
    "ChunkGroup",
    "Chunk",
    "ConditionRule",
    "ActivationConditions",
    "Collection",
    "MIN_KEYWORD_WEIGHT",
    "MAX_KEYWORD_WEIGHT",
]
