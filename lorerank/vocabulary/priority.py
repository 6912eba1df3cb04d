# lorerank/vocabulary/priority.py
"""
Keyword Priority Index - normalized keyword → importance weight.

The index is an immutable value: it is built once (from the built-in table,
a YAML file, or a dict) and passed into the Synthesizer and the Boost
Calculator. Deriving a changed index returns a new object.

Usage:
    index = PriorityIndex.default()
    index.weight("Prophecies")      # 150, stem-normalized lookup
    index.weight("teapot")          # 50, the default weight

    custom = index.with_weights({"teapot": 180})
"""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Union

import yaml

from lorerank.core.chunk import MAX_KEYWORD_WEIGHT, MIN_KEYWORD_WEIGHT
from lorerank.core.exceptions import ConfigParseError
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import VOCABULARY

from .variations import stem_keyword

logger = get_logger(__name__)

DEFAULT_WEIGHT = 50

# Critical plot vocabulary ranks high, filler ranks low. Weights are on the
# same 1-200 scale as Chunk.custom_weights.
BUILTIN_PRIORITIES: dict[str, int] = {
    # critical
    "prophecy": 150,
    "curse": 140,
    "secret": 140,
    "betrayal": 140,
    "oath": 130,
    "death": 130,
    "heir": 130,
    "artifact": 125,
    "ritual": 120,
    "war": 120,
    # high
    "magic": 110,
    "spell": 110,
    "dragon": 110,
    "kingdom": 105,
    "temple": 105,
    "guild": 105,
    "faction": 105,
    "weapon": 100,
    "treaty": 100,
    "rebellion": 100,
    # low
    "thing": 15,
    "stuff": 10,
    "really": 10,
    "quite": 10,
    "rather": 10,
    "somewhat": 10,
    "pretty": 10,
    "fairly": 10,
    "time": 20,
    "way": 20,
}


def _clamp(weight: int) -> int:
    return max(MIN_KEYWORD_WEIGHT, min(MAX_KEYWORD_WEIGHT, int(weight)))


class PriorityIndex:
    """
    Immutable mapping from stem-normalized keyword to weight in [1, 200].

    Args:
        weights: Keyword → weight mapping (keys are normalized on construction)
        default_weight: Weight returned for keywords not in the index
    """

    __slots__ = ("_weights", "_default")

    def __init__(
        self,
        weights: Optional[Mapping[str, int]] = None,
        default_weight: int = DEFAULT_WEIGHT,
    ):
        normalized = {stem_keyword(k): _clamp(w) for k, w in (weights or {}).items() if k}
        self._weights: Mapping[str, int] = MappingProxyType(normalized)
        self._default = _clamp(default_weight)

    @classmethod
    def default(cls, default_weight: int = DEFAULT_WEIGHT) -> "PriorityIndex":
        """Index over the built-in priority table."""
        return cls(BUILTIN_PRIORITIES, default_weight=default_weight)

    @classmethod
    def from_yaml(
        cls,
        path: Union[str, Path],
        default_weight: int = DEFAULT_WEIGHT,
        include_builtin: bool = True,
    ) -> "PriorityIndex":
        """
        Load an index from a YAML mapping ``{keyword: weight}``.

        A top-level ``priorities:`` key is also accepted.
        """
        p = Path(path)
        try:
            with p.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigParseError(f"Invalid priority YAML: {e}", path=p) from e

        if isinstance(data, dict) and isinstance(data.get("priorities"), dict):
            data = data["priorities"]
        if not isinstance(data, dict):
            raise ConfigParseError("Priority file must be a mapping of keyword → weight", path=p)

        base = dict(BUILTIN_PRIORITIES) if include_builtin else {}
        base.update({str(k): int(v) for k, v in data.items()})
        logger.debug(f"{VOCABULARY} Loaded {len(data)} keyword priorities from {p}")
        return cls(base, default_weight=default_weight)

    @property
    def default_weight(self) -> int:
        return self._default

    def weight(self, keyword: str) -> int:
        """Weight for ``keyword`` (default weight when unknown)."""
        return self._weights.get(stem_keyword(keyword), self._default)

    def get(self, keyword: str) -> Optional[int]:
        """Weight for ``keyword``, or None when the index has no entry."""
        return self._weights.get(stem_keyword(keyword))

    def with_weights(self, weights: Mapping[str, int]) -> "PriorityIndex":
        """Return a new index with ``weights`` layered over this one."""
        merged = dict(self._weights)
        merged.update({stem_keyword(k): _clamp(w) for k, w in weights.items() if k})
        return PriorityIndex(merged, default_weight=self._default)

    def __contains__(self, keyword: object) -> bool:
        return isinstance(keyword, str) and stem_keyword(keyword) in self._weights

    def __iter__(self) -> Iterator[str]:
        return iter(self._weights)

    def __len__(self) -> int:
        return len(self._weights)

    def __repr__(self) -> str:
        return f"PriorityIndex(size={len(self._weights)}, default={self._default})"


__all__ = ["PriorityIndex", "BUILTIN_PRIORITIES", "DEFAULT_WEIGHT"]
