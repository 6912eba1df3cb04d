# lorerank/core/exceptions.py
"""
All exceptions for lorerank.

Hierarchy:
    LoreRankError
    ├── RetrieverError - Query-time failures (contained inside retrieve())
    │   ├── CollectionUnavailableError - Vector service rejected or timed out
    │   ├── MissingChunkMetadataError - Vector hit without a stored chunk
    │   └── EmptyQueryError - Nothing to query
    ├── VocabularyError - Keyword/regex handling failures
    │   └── MalformedRegexError - Stored keyword regex does not compile
    ├── StorageError - Collection store failures
    │   └── CollectionNotFoundError
    └── ConfigError - Configuration failures
        ├── ConfigNotFoundError
        ├── ConfigParseError
        └── ConfigValidationError
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class LoreRankError(Exception):
    """Base error for everything raised by lorerank."""

    pass


# =============================================================================
# Retrieval Errors
# =============================================================================


class RetrieverError(LoreRankError):
    """General retrieval failure."""

    pass


class CollectionUnavailableError(RetrieverError):
    """The vector service rejected or timed out for one collection."""

    def __init__(
        self,
        collection_id: str,
        message: str = "vector service unavailable",
        status_code: Optional[int] = None,
    ):
        self.collection_id = collection_id
        self.status_code = status_code
        detail = f"{message} (collection: {collection_id}"
        if status_code is not None:
            detail += f", HTTP {status_code}"
        super().__init__(detail + ")")


class MissingChunkMetadataError(RetrieverError):
    """A vector hit references a hash that no touched collection stores."""

    def __init__(self, chunk_hash: int, collection_id: str):
        self.chunk_hash = chunk_hash
        self.collection_id = collection_id
        super().__init__(f"No chunk {chunk_hash} in collection {collection_id!r}")


class EmptyQueryError(RetrieverError):
    """Empty query text or no activated collections."""

    pass


# =============================================================================
# Vocabulary Errors
# =============================================================================


class VocabularyError(LoreRankError):
    """Keyword or regex handling failure."""

    pass


class MalformedRegexError(VocabularyError):
    """A stored keyword regex failed to compile."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid keyword regex {pattern!r}: {reason}")


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(LoreRankError):
    """Collection store failure."""

    pass


class CollectionNotFoundError(StorageError):
    """Requested collection does not exist in the store."""

    pass


# =============================================================================
# Config Errors
# =============================================================================


class ConfigError(LoreRankError):
    """Configuration could not be loaded; carries the offending file when known."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path:
            message = f"{message} (file: {path})"
        super().__init__(message)


class ConfigNotFoundError(ConfigError):
    """The config path points at nothing."""

    pass


class ConfigParseError(ConfigError):
    """The document is not valid YAML or is not a mapping."""

    pass


class ConfigValidationError(ConfigError):
    """Merged values were rejected by LoreRankConfig."""

    pass


__all__ = [
    "LoreRankError",
    # Retrieval
    "RetrieverError",
    "CollectionUnavailableError",
    "MissingChunkMetadataError",
    "EmptyQueryError",
    # Vocabulary
    "VocabularyError",
    "MalformedRegexError",
    # Storage
    "StorageError",
    "CollectionNotFoundError",
    # Config
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
