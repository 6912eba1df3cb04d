# lorerank/storage/yaml_store.py
"""
YAML-file collection store.

File format:
    collections:
      - id: lore
        scope: global
        activation_triggers: [dragon]
        chunks:
          - hash: 1
            text: "..."
            system_keywords: [dragon]

camelCase keys (``activationTriggers``, ``systemKeywords``...) are accepted
on load; saves write snake_case.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional, Union

import yaml
from pydantic import ValidationError

from lorerank.core.chunk import Collection
from lorerank.core.exceptions import StorageError
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import STORAGE

from .base import InMemoryCollectionStore

logger = get_logger(__name__)


class YamlCollectionStore(InMemoryCollectionStore):
    """
    Store backed by one YAML document.

    The file is read once on construction; ``save_collection`` rewrites it.
    A missing file starts an empty store.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> list[Collection]:
        if not self.path.exists():
            logger.debug(f"{STORAGE} No store at {self.path}, starting empty")
            return []

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise StorageError(f"Invalid YAML in store {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Store root must be a mapping (file: {self.path})")

        collections = []
        for raw in data.get("collections") or []:
            try:
                collections.append(Collection.model_validate(raw))
            except ValidationError as e:
                cid = raw.get("id", "?") if isinstance(raw, dict) else "?"
                raise StorageError(f"Invalid collection {cid!r} in {self.path}: {e}") from e

        logger.debug(f"{STORAGE} Loaded {len(collections)} collections from {self.path}")
        return collections

    def save_collection(self, collection: Collection) -> None:
        super().save_collection(collection)
        self.flush()

    def flush(self) -> None:
        """Write every collection back to the YAML file."""
        payload: dict[str, Any] = {
            "collections": [_dump_collection(c) for c in self.list_collections()]
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(payload, f, sort_keys=False, allow_unicode=True)
        logger.info(f"{STORAGE} Wrote {len(payload['collections'])} collections to {self.path}")


def _dump_collection(collection: Collection) -> dict[str, Any]:
    data = collection.model_dump(mode="json", exclude_none=True)
    data["chunks"] = list(data.get("chunks", {}).values())
    return data


def load_store(path: Union[str, Path], scopes: Optional[Iterable[str]] = None) -> list[Collection]:
    """Read the collections of a YAML store, optionally filtered by scope."""
    return YamlCollectionStore(path).list_collections(scopes)


__all__ = ["YamlCollectionStore", "load_store"]
