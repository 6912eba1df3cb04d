# tests/conftest.py
"""
Root conftest - shared fixtures for the lorerank test suite.

Test Tiers (for CI/CD optimization):
=====================================
- tier1: Critical path tests - pure logic, no I/O (<30s)
         Run: pytest -m tier1
- tier2: Unit tests with mocks - no real services (<2min)
         Run: pytest -m "tier1 or tier2"

Recommended CI Configuration:
- Every commit:    pytest -m tier1
- PR merge:        pytest
"""

from __future__ import annotations

from typing import Callable

import pytest

from lorerank.core.chunk import Chunk, Collection
from lorerank.storage.base import InMemoryCollectionStore
from lorerank.vocabulary.patterns import clear_pattern_cache


@pytest.fixture(autouse=True)
def _fresh_pattern_cache():
    """Compiled regex cache is process-wide; start every test empty."""
    clear_pattern_cache()
    yield
    clear_pattern_cache()


@pytest.fixture
def make_chunk() -> Callable[..., Chunk]:
    """Factory for chunks with sensible defaults: make_chunk(1, keywords=["dragon"])."""

    def _make(chunk_hash: int, text: str = "", keywords=None, **kwargs) -> Chunk:
        if keywords is not None:
            kwargs["system_keywords"] = keywords
        return Chunk(hash=chunk_hash, text=text or f"chunk {chunk_hash}", **kwargs)

    return _make


@pytest.fixture
def make_store() -> Callable[..., InMemoryCollectionStore]:
    """Factory for an in-memory store holding one always-active collection."""

    def _make(chunks, collection_id: str = "lore", **kwargs) -> InMemoryCollectionStore:
        kwargs.setdefault("always_active", True)
        collection = Collection(id=collection_id, chunks=list(chunks), **kwargs)
        return InMemoryCollectionStore([collection])

    return _make
