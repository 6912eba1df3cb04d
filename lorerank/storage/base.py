# lorerank/storage/base.py
"""Collection store contract and the in-memory implementation."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, runtime_checkable

from lorerank.core.chunk import Collection
from lorerank.core.exceptions import CollectionNotFoundError
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import STORAGE

logger = get_logger(__name__)


@runtime_checkable
class CollectionStore(Protocol):
    """Protocol for the settings/storage collaborator."""

    def list_collections(self, scopes: Optional[Iterable[str]] = None) -> list[Collection]: ...

    def get_collection(self, collection_id: str) -> Collection: ...

    def save_collection(self, collection: Collection) -> None: ...


class InMemoryCollectionStore:
    """
    Dict-backed store.

    ``list_collections(scopes)`` returns collections whose scope is in
    ``scopes`` (all collections when ``scopes`` is None), in insertion order.
    """

    def __init__(self, collections: Optional[Iterable[Collection]] = None):
        self._collections: dict[str, Collection] = {}
        for collection in collections or []:
            self._collections[collection.id] = collection

    def list_collections(self, scopes: Optional[Iterable[str]] = None) -> list[Collection]:
        if scopes is None:
            return list(self._collections.values())
        wanted = set(scopes)
        return [c for c in self._collections.values() if c.scope in wanted]

    def get_collection(self, collection_id: str) -> Collection:
        try:
            return self._collections[collection_id]
        except KeyError:
            raise CollectionNotFoundError(f"Collection not found: {collection_id!r}") from None

    def save_collection(self, collection: Collection) -> None:
        self._collections[collection.id] = collection
        logger.debug(f"{STORAGE} Saved collection {collection.id} ({len(collection.chunks)} chunks)")

    def __len__(self) -> int:
        return len(self._collections)


__all__ = ["CollectionStore", "InMemoryCollectionStore"]
