# lorerank/vocabulary/matcher.py
"""
Query-time keyword extraction and boost scoring.

The Query Keyword Extractor runs the synthesizer's weighting over live
query text. The Boost Calculator scores one chunk against the extracted
keywords and the raw query text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from lorerank.config.schema import BoostConfig, SynthesisConfig
from lorerank.core.chunk import Chunk, KeywordRegex
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import VOCABULARY

from .patterns import compile_pattern
from .priority import PriorityIndex
from .synthesizer import extract_weighted_keywords
from .variations import normalize_for_matching, stem_keyword

logger = get_logger(__name__)

_PUNCT_RE = re.compile(r"[^\w\s\-]")


@dataclass(frozen=True)
class QueryKeywords:
    """Keywords extracted from one query, plus the forms used for matching."""

    text: str
    keywords: tuple[str, ...] = ()
    stems: frozenset[str] = frozenset()
    stemmed_text: str = ""

    @property
    def empty(self) -> bool:
        return not self.text.strip()


@dataclass
class BoostResult:
    """Boost Calculator output; ``matches`` is returned even when boost is 0."""

    boost: float = 0.0
    matches: list[str] = field(default_factory=list)


class QueryKeywordExtractor:
    """
    Applies the synthesizer's weighting algorithm to query text.

    There is no title signal and no minimum-weight cut, so a word mentioned
    once in the query still counts.
    """

    def __init__(
        self,
        synthesis: Optional[SynthesisConfig] = None,
        max_keywords: int = 50,
    ):
        self.synthesis = synthesis or SynthesisConfig()
        self.max_keywords = max_keywords

    def extract(self, text: str) -> QueryKeywords:
        weighted = extract_weighted_keywords(
            text or "",
            config=self.synthesis,
            min_weight=0.0,
            max_keywords=self.max_keywords,
        )
        keywords = tuple(k for k, _ in weighted)
        stems = frozenset(stem_keyword(k) for k in keywords)
        stemmed_text = stem_keyword(_PUNCT_RE.sub(" ", text or ""))

        if keywords:
            logger.debug(f"{VOCABULARY} Query keywords: {list(keywords)}")

        return QueryKeywords(
            text=text or "",
            keywords=keywords,
            stems=stems,
            stemmed_text=stemmed_text,
        )


class KeywordBoostCalculator:
    """
    Scores a chunk's keywords and regex patterns against a query.

    Keyword weight:
        custom_weights[keyword], else the PriorityIndex weight; user custom
        keywords are raised to at least ``custom_keyword_floor`` (100).

    Regex weight:
        the pattern's declared priority; when unset, 80 for synthesized
        patterns and 100 for user patterns.

    Usage:
        calc = KeywordBoostCalculator(PriorityIndex.default())
        query = QueryKeywordExtractor().extract("a dragon appears")
        calc.score(chunk, query)   # BoostResult(boost=110.0, matches=['keyword:dragon'])
    """

    def __init__(
        self,
        priority_index: Optional[PriorityIndex] = None,
        config: Optional[BoostConfig] = None,
    ):
        self.config = config or BoostConfig()
        self.priority_index = priority_index or PriorityIndex.default(
            default_weight=self.config.default_weight
        )

    def score(self, chunk: Chunk, query: QueryKeywords) -> BoostResult:
        result = BoostResult()
        if query.empty:
            return result

        disabled = {stem_keyword(k) for k in chunk.disabled_keywords}
        custom_weights = {stem_keyword(k): w for k, w in chunk.custom_weights.items()}
        padded_query = f" {query.stemmed_text} "

        for keyword in chunk.keywords:
            stem = stem_keyword(keyword)
            if not stem or stem in disabled:
                continue
            if not (stem in query.stems or (" " in stem and f" {stem} " in padded_query)):
                continue

            weight = custom_weights.get(stem)
            if weight is None:
                weight = self.priority_index.weight(keyword)
            if chunk.is_custom_keyword(keyword):
                weight = max(weight, self.config.custom_keyword_floor)

            result.boost += weight
            result.matches.append(f"keyword:{normalize_for_matching(keyword)}")

        for entry in chunk.keyword_regex:
            self._score_regex(entry, self.config.regex_priority, query.text, result)
        for entry in chunk.custom_regex:
            self._score_regex(entry, self.config.custom_regex_priority, query.text, result)

        return result

    def _score_regex(
        self,
        entry: KeywordRegex,
        default_priority: int,
        text: str,
        result: BoostResult,
    ) -> None:
        compiled = compile_pattern(entry.pattern, entry.flags)
        if compiled is None or not compiled.search(text):
            return
        priority = entry.priority if entry.priority is not None else default_priority
        result.boost += priority
        result.matches.append(f"regex:{entry.pattern}")


__all__ = [
    "QueryKeywords",
    "BoostResult",
    "QueryKeywordExtractor",
    "KeywordBoostCalculator",
]
