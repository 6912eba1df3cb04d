# lorerank/config/schema.py
"""
Configuration schema for lorerank.

This is the SINGLE source of truth for lorerank configuration.

Schema hierarchy:
- LoreRankConfig: The main config consumed by the retriever
- RetrievalConfig: Fan-out, top-K and vector score handling
- CrosslinkConfig: Crosslink derivation
- FallbackConfig: Keyword fallback retrieval
- LinkConfig: Declared link resolution
- GroupConfig: Cooperative chunk groups
- ImportanceConfig: Importance weighting during fusion
- ChunkConditionsConfig: Per-chunk activation conditions
- DecayConfig: Temporal decay of chat-derived chunks
- BoostConfig: Keyword boost weights
- SynthesisConfig: Ingestion-time keyword synthesis and auto-linking
- LoggingConfig: Logging settings
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ScoreConvention = Literal["similarity", "cosine_distance", "distance"]
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RetrievalConfig(BaseModel):
    """
    Multi-collection retrieval settings.

    Example YAML:
        retrieval:
          top_k: 8
          per_collection_top_k: 20
          vector_threshold: 0.0
          score_convention: cosine_distance
          max_workers: 4

    When ``per_collection_top_k`` is omitted, each collection is asked for
    the overfetch amount ``min(100, max(10, 2 * top_k))``.
    """

    top_k: int = Field(default=8, ge=1, description="Global result cap, applied last")
    per_collection_top_k: Optional[int] = Field(
        default=None, ge=1, description="Hits requested from each collection"
    )
    vector_threshold: float = Field(
        default=0.0, description="Threshold forwarded to the vector service (native units)"
    )
    score_convention: ScoreConvention = Field(
        default="similarity", description="Meaning of the vector service's score"
    )
    max_workers: int = Field(default=4, ge=1, description="Fan-out concurrency cap")

    model_config = ConfigDict(extra="forbid")

    def collection_top_k(self) -> int:
        if self.per_collection_top_k is not None:
            return self.per_collection_top_k
        return min(100, max(10, self.top_k * 2))


class CrosslinkConfig(BaseModel):
    """Crosslink derivation from shared keywords and tags."""

    enabled: bool = True
    threshold: float = Field(default=0.25, ge=0.0)
    max_results: int = Field(default=5, ge=0)
    tag_weight: float = Field(default=0.25, ge=0.0)
    max_tag_bonus: float = Field(default=0.5, ge=0.0)

    model_config = ConfigDict(extra="forbid")


class FallbackConfig(BaseModel):
    """
    Keyword fallback retrieval.

    ``trigger_below`` defaults to the global top_k: fallback runs whenever
    semantic retrieval returned fewer primary candidates than that.
    """

    enabled: bool = True
    limit: int = Field(default=5, ge=0)
    trigger_below: Optional[int] = Field(default=None, ge=0)
    prioritize: bool = False

    model_config = ConfigDict(extra="forbid")


class LinkConfig(BaseModel):
    """Declared chunk link resolution."""

    soft_boost: float = Field(default=0.15, ge=0.0)

    model_config = ConfigDict(extra="forbid")


class GroupConfig(BaseModel):
    """Cooperative chunk groups."""

    enabled: bool = True
    boost_multiplier: float = Field(default=1.3, ge=0.0)
    max_forced: int = Field(default=5, ge=0)

    model_config = ConfigDict(extra="forbid")


class ImportanceConfig(BaseModel):
    """Importance weighting applied to the fused score."""

    enabled: bool = True

    model_config = ConfigDict(extra="forbid")


class ChunkConditionsConfig(BaseModel):
    """Per-chunk activation conditions (chunks whose conditions fail are hidden)."""

    enabled: bool = True

    model_config = ConfigDict(extra="forbid")


class DecayConfig(BaseModel):
    """
    Temporal decay for chunks carrying a ``message_id``.

    Example YAML:
        decay:
          enabled: true
          mode: exponential
          half_life: 50
          min_relevance: 0.3
          scene_aware: true

    Decay only applies when the query context reports the current message
    id. The multiplier never drops below ``min_relevance``.
    """

    enabled: bool = False
    mode: Literal["exponential", "linear"] = "exponential"
    half_life: float = Field(default=50, gt=0, description="Messages until 50% relevance")
    linear_rate: float = Field(default=0.01, gt=0.0, le=1.0, description="Loss per message")
    min_relevance: float = Field(default=0.3, ge=0.0, le=1.0)
    scene_aware: bool = Field(default=False, description="Reset decay at scene boundaries")

    model_config = ConfigDict(extra="forbid")


class BoostConfig(BaseModel):
    """Keyword Boost Calculator weights."""

    default_weight: int = Field(default=50, ge=1, le=200)
    custom_keyword_floor: int = Field(default=100, ge=1, le=200)
    regex_priority: int = Field(default=80, ge=1, le=200)
    custom_regex_priority: int = Field(default=100, ge=1, le=200)
    max_query_keywords: int = Field(default=50, ge=1)

    model_config = ConfigDict(extra="forbid")


class SynthesisConfig(BaseModel):
    """Ingestion-time keyword synthesis and auto-linking."""

    title_weight: float = 3.0
    quote_weight: float = 2.0
    occurrence_weight: float = 0.5
    min_weight: float = 1.0
    max_keywords: int = Field(default=12, ge=1)
    min_family_prefix: int = Field(default=4, ge=2)
    force_link_mentions: int = Field(default=7, ge=1)
    soft_link_mentions: int = Field(default=3, ge=1)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_link_thresholds(self) -> "SynthesisConfig":
        if self.soft_link_mentions > self.force_link_mentions:
            raise ValueError("soft_link_mentions must not exceed force_link_mentions")
        return self


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="WARNING", description="Root logging level")

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown logging level {v!r}")
        return level

    model_config = ConfigDict(extra="forbid")


class LoreRankConfig(BaseModel):
    """
    Complete lorerank configuration.

    Example YAML:
        retrieval:
          top_k: 6
        fallback:
          limit: 3
          prioritize: true
        synthesis:
          max_keywords: 16
    """

    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    crosslink: CrosslinkConfig = Field(default_factory=CrosslinkConfig)
    fallback: FallbackConfig = Field(default_factory=FallbackConfig)
    links: LinkConfig = Field(default_factory=LinkConfig)
    groups: GroupConfig = Field(default_factory=GroupConfig)
    importance: ImportanceConfig = Field(default_factory=ImportanceConfig)
    chunk_conditions: ChunkConditionsConfig = Field(default_factory=ChunkConditionsConfig)
    decay: DecayConfig = Field(default_factory=DecayConfig)
    boost: BoostConfig = Field(default_factory=BoostConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")

    def fallback_trigger(self) -> int:
        if self.fallback.trigger_below is not None:
            return self.fallback.trigger_below
        return self.retrieval.top_k


__all__ = [
    "LoreRankConfig",
    "RetrievalConfig",
    "CrosslinkConfig",
    "FallbackConfig",
    "LinkConfig",
    "GroupConfig",
    "ImportanceConfig",
    "ChunkConditionsConfig",
    "DecayConfig",
    "BoostConfig",
    "SynthesisConfig",
    "LoggingConfig",
    "ScoreConvention",
]
