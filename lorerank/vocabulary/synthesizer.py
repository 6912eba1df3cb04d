# lorerank/vocabulary/synthesizer.py
"""
Chunk Metadata Synthesizer.

Derives, for one chunk's text and labels:
- a weighted keyword set (title words, quoted phrases, content words)
- regex variants synthesized from that keyword set
- curated keywords/regex from the domain group table (header only)
- cross-reference mention counts toward other sections

The synthesizer is a pure function of its inputs plus the injected
PriorityIndex. Keyword regeneration builds a new Chunk from its output.

Usage:
    synth = ChunkMetadataSynthesizer(PriorityIndex.default())
    result = synth.synthesize(
        text,
        section="Magic",
        known_sections=["Magic", "Wolf Riders"],
    )
    result.keywords        # ['spell', 'rune', ...]
    result.mentions        # {'Wolf Riders': 4}
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from lorerank.config.schema import SynthesisConfig
from lorerank.core.chunk import Chunk, KeywordRegex
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import VOCABULARY

from .domain_groups import detect_groups
from .patterns import FamilyRegex, PhraseRegex, build_variants, to_keyword_regex
from .priority import PriorityIndex
from .variations import normalize_for_matching, stem_keyword, stem_token, tokenize

logger = get_logger(__name__)

GROUP_TAG_PREFIX = "group:"

_QUOTE_RE = re.compile('["“]([^"“”\\n]{2,40})["”]')


# =============================================================================
# Weighted keyword extraction
# =============================================================================


def extract_weighted_keywords(
    text: str,
    titles: Sequence[str] = (),
    config: Optional[SynthesisConfig] = None,
    min_weight: Optional[float] = None,
    max_keywords: Optional[int] = None,
    priority_index: Optional[PriorityIndex] = None,
) -> list[tuple[str, float]]:
    """
    Combine the three weighted signals and return the top keywords.

    Signals:
        1. Title words (from ``titles``) that occur in the text
        2. Quoted substrings (2-40 characters)
        3. Content words, weighted per occurrence

    Weights are summed per lowercase key. Entries below ``min_weight`` are
    dropped (pass ``min_weight=None`` to use the config value, or ``0`` to
    keep everything). Ties are broken by priority index weight, then by
    keyword.

    Returns:
        List of (keyword, weight), heaviest first
    """
    cfg = config or SynthesisConfig()
    floor = cfg.min_weight if min_weight is None else min_weight
    cap = cfg.max_keywords if max_keywords is None else max_keywords

    content_words = tokenize(text)
    counts = Counter(content_words)
    weights: dict[str, float] = {}

    # Title words match the text by stem; the text's spelling becomes the key
    present: dict[str, str] = {}
    for word in content_words:
        present.setdefault(stem_token(word), word)
    for title in titles:
        for word in dict.fromkeys(tokenize(title)):
            key = present.get(stem_token(word))
            if key is not None:
                weights[key] = weights.get(key, 0.0) + cfg.title_weight

    for match in _QUOTE_RE.finditer(text):
        phrase = " ".join(match.group(1).lower().split())
        if len(phrase) >= 2:
            weights[phrase] = weights.get(phrase, 0.0) + cfg.quote_weight

    for word, count in counts.items():
        weights[word] = weights.get(word, 0.0) + cfg.occurrence_weight * count

    kept = [(k, w) for k, w in weights.items() if w >= floor]

    def sort_key(item: tuple[str, float]) -> tuple:
        prio = priority_index.weight(item[0]) if priority_index is not None else 0
        return (-item[1], -prio, item[0])

    kept.sort(key=sort_key)
    return kept[:cap]


# =============================================================================
# Synthesis result
# =============================================================================


@dataclass
class SynthesisResult:
    """
    Everything the synthesizer derived for one chunk.

    Attributes:
        keywords: Ordered keyword list (extracted first, then domain keywords)
        weights: Signal weight per extracted keyword
        keyword_regex: Synthesized family/phrase regexes plus domain regexes
        custom_weights: Priorities for curated domain keywords
        tags: ``group:<name>`` tags for detected domain groups
        mentions: Other section → whole-word mention count in this text
    """

    keywords: list[str] = field(default_factory=list)
    weights: dict[str, float] = field(default_factory=dict)
    keyword_regex: list[KeywordRegex] = field(default_factory=list)
    custom_weights: dict[str, int] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    mentions: dict[str, int] = field(default_factory=dict)

    @property
    def groups(self) -> list[str]:
        return [t[len(GROUP_TAG_PREFIX):] for t in self.tags if t.startswith(GROUP_TAG_PREFIX)]


# =============================================================================
# Synthesizer
# =============================================================================


class ChunkMetadataSynthesizer:
    """
    Ingestion-time keyword, regex and cross-reference derivation.

    Args:
        priority_index: Injected keyword priorities (used for tie-breaking)
        config: Synthesis weights and limits
    """

    def __init__(
        self,
        priority_index: Optional[PriorityIndex] = None,
        config: Optional[SynthesisConfig] = None,
    ):
        self.priority_index = priority_index or PriorityIndex.default()
        self.config = config or SynthesisConfig()

    def synthesize(
        self,
        text: str,
        section: str = "",
        topic: str = "",
        tags: Iterable[str] = (),
        known_sections: Iterable[str] = (),
    ) -> SynthesisResult:
        cfg = self.config
        titles = [t for t in (section, topic) if t]
        own_title_stems = {stem_token(w) for t in titles for w in tokenize(t)}

        # Cross-references toward other sections
        text_stems = Counter(stem_token(w) for w in tokenize(text))
        own_key = normalize_for_matching(section)
        mentions: dict[str, int] = {}
        foreign_stems: set[str] = set()

        for other in dict.fromkeys(known_sections):
            if not other or normalize_for_matching(other) == own_key:
                continue
            words = {stem_token(w) for w in tokenize(other)}
            foreign_stems.update(words)
            count = max((text_stems[w] for w in words), default=0)
            if count > 0:
                mentions[other] = count

        foreign_stems -= own_title_stems

        # Weighted keywords; cross-section title words never become our keywords
        candidates = extract_weighted_keywords(
            text,
            titles=titles,
            config=cfg,
            max_keywords=len(text_stems) + len(titles) + 64,
            priority_index=self.priority_index,
        )
        kept = [(k, w) for k, w in candidates if stem_keyword(k) not in foreign_stems]
        kept = kept[: cfg.max_keywords]

        keywords = [k for k, _ in kept]
        weights = dict(kept)

        # Regex variants from the extracted keyword list
        regexes: list[KeywordRegex] = []
        for variant in build_variants(keywords, min_prefix=cfg.min_family_prefix):
            if isinstance(variant, (FamilyRegex, PhraseRegex)):
                kr = to_keyword_regex(variant)
                if kr is not None:
                    regexes.append(kr)

        # Domain groups keyed on the header only
        custom_weights: dict[str, int] = {}
        group_tags: list[str] = []
        header = " ".join(titles)
        for group in detect_groups(header):
            group_tags.append(f"{GROUP_TAG_PREFIX}{group.name}")
            for kw, prio in group.keywords.items():
                custom_weights[kw] = prio
                if kw not in keywords:
                    keywords.append(kw)
            regexes.extend(group.keyword_regexes())

        existing_tags = [t for t in tags if not str(t).startswith(GROUP_TAG_PREFIX)]
        all_tags = list(dict.fromkeys([*existing_tags, *group_tags]))

        logger.debug(
            f"{VOCABULARY} Synthesized {len(keywords)} keywords, {len(regexes)} regex, "
            f"{len(mentions)} cross-refs for section {section!r}"
        )

        return SynthesisResult(
            keywords=keywords,
            weights=weights,
            keyword_regex=regexes,
            custom_weights=custom_weights,
            tags=all_tags,
            mentions=mentions,
        )

    def synthesize_chunk(
        self, chunk: Chunk, known_sections: Iterable[str] = ()
    ) -> SynthesisResult:
        return self.synthesize(
            chunk.text,
            section=chunk.section,
            topic=chunk.topic,
            tags=chunk.tags,
            known_sections=known_sections,
        )

    def synthesize_batch(self, chunks: Sequence[Chunk]) -> dict[int, SynthesisResult]:
        """Synthesize every chunk of one ingestion batch, keyed by hash."""
        sections = [c.section for c in chunks if c.section]
        return {c.hash: self.synthesize_chunk(c, known_sections=sections) for c in chunks}

    def regenerate_keywords(
        self, chunk: Chunk, known_sections: Iterable[str] = ()
    ) -> Chunk:
        """
        Rebuild a chunk's keyword metadata from its text.

        Replaces system keywords, keyword regex, custom weights and disabled
        keywords entirely and clears custom keywords. Text, links, groups and
        flags are untouched.
        """
        result = self.synthesize_chunk(chunk, known_sections=known_sections)
        logger.info(
            f"{VOCABULARY} Regenerated keywords for chunk {chunk.hash} "
            f"({len(chunk.keywords)} → {len(result.keywords)})"
        )
        return apply_synthesis(chunk, result)


def apply_synthesis(chunk: Chunk, result: SynthesisResult) -> Chunk:
    """Return a copy of ``chunk`` carrying ``result`` as its keyword metadata."""
    return chunk.model_copy(
        update={
            "system_keywords": list(result.keywords),
            "custom_keywords": [],
            "disabled_keywords": [],
            "custom_weights": dict(result.custom_weights),
            "keyword_regex": list(result.keyword_regex),
            "tags": list(result.tags),
        },
        deep=True,
    )


__all__ = [
    "extract_weighted_keywords",
    "SynthesisResult",
    "ChunkMetadataSynthesizer",
    "apply_synthesis",
    "GROUP_TAG_PREFIX",
]
