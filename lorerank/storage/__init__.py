# lorerank/storage/__init__.py
"""Collection stores: protocol, in-memory and YAML-file implementations."""

from .base import CollectionStore, InMemoryCollectionStore
from .yaml_store import YamlCollectionStore, load_store

__all__ = [
    "CollectionStore",
    "InMemoryCollectionStore",
    "YamlCollectionStore",
    "load_store",
]
