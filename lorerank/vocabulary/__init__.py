# lorerank/vocabulary/__init__.py
"""
Keyword vocabulary: priorities, synthesis, linking and query-time matching.

Ingestion:
    synth = ChunkMetadataSynthesizer(PriorityIndex.default())
    results = synth.synthesize_batch(chunks)
    linked = AutoLinker().link_batch(chunks, {h: r.mentions for h, r in results.items()})

Query time:
    query = QueryKeywordExtractor().extract("a dragon appears")
    boost = KeywordBoostCalculator().score(chunk, query)
"""

from .linker import AutoLinker
from .matcher import BoostResult, KeywordBoostCalculator, QueryKeywordExtractor, QueryKeywords
from .patterns import FamilyRegex, Literal, PhraseRegex, build_variants, compile_pattern
from .priority import PriorityIndex
from .synthesizer import (
    ChunkMetadataSynthesizer,
    SynthesisResult,
    apply_synthesis,
    extract_weighted_keywords,
)
from .variations import normalize_for_matching, stem_keyword, tokenize

__all__ = [
    "PriorityIndex",
    "ChunkMetadataSynthesizer",
    "SynthesisResult",
    "apply_synthesis",
    "extract_weighted_keywords",
    "AutoLinker",
    "QueryKeywordExtractor",
    "QueryKeywords",
    "KeywordBoostCalculator",
    "BoostResult",
    "Literal",
    "FamilyRegex",
    "PhraseRegex",
    "build_variants",
    "compile_pattern",
    "normalize_for_matching",
    "stem_keyword",
    "tokenize",
]
