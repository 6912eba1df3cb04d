# lorerank/core/__init__.py
"""
lorerank core - data model and error hierarchy shared by every stage.

Public API:
    - Chunk, Collection and their metadata models
    - Candidate, RankedResult, ProvenanceEntry
    - ScopeContext
    - Exceptions
"""

from .candidate import Candidate, ProvenanceEntry, RankedResult
from .chunk import (
    ActivationConditions,
    Chunk,
    ChunkGroup,
    ChunkLink,
    Collection,
    ConditionRule,
    KeywordRegex,
    LinkMode,
)
from .context import ActiveChunk, LorebookEntry, Scene, ScopeContext
from .exceptions import (
    CollectionNotFoundError,
    CollectionUnavailableError,
    ConfigError,
    LoreRankError,
    MalformedRegexError,
    RetrieverError,
)

__all__ = [
    "ActiveChunk",
    "ActivationConditions",
    "Candidate",
    "Chunk",
    "ChunkGroup",
    "ChunkLink",
    "Collection",
    "ConditionRule",
    "KeywordRegex",
    "LinkMode",
    "LorebookEntry",
    "ProvenanceEntry",
    "RankedResult",
    "Scene",
    "ScopeContext",
    "CollectionNotFoundError",
    "CollectionUnavailableError",
    "ConfigError",
    "LoreRankError",
    "MalformedRegexError",
    "RetrieverError",
]
