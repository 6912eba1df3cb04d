# lorerank/__init__.py
"""
lorerank - hybrid retrieval and ranking of prompt-context chunks.

Combines an external vector-similarity service with a keyword weighting
layer: synthesized keywords and regex per chunk, query-time boosts,
crosslink and keyword-fallback expansion, link resolution, inclusion
groups and multi-collection fan-out.

Usage:
    from lorerank import MultiCollectionRetriever, ScopeContext, load_config
    from lorerank.storage import YamlCollectionStore
    from lorerank.vector_db import NullVectorClient

    retriever = MultiCollectionRetriever(
        YamlCollectionStore("lore.yaml"), NullVectorClient(), load_config()
    )
    for result in retriever.retrieve("a dragon appears", ScopeContext()):
        print(result.hash, result.final_score)
"""

from lorerank.config import LoreRankConfig, load_config
from lorerank.core import (
    Chunk,
    Collection,
    LoreRankError,
    RankedResult,
    ScopeContext,
)
from lorerank.retrieval import MultiCollectionRetriever, retrieve
from lorerank.vocabulary import (
    AutoLinker,
    ChunkMetadataSynthesizer,
    KeywordBoostCalculator,
    PriorityIndex,
    QueryKeywordExtractor,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Chunk",
    "Collection",
    "RankedResult",
    "ScopeContext",
    "LoreRankError",
    "LoreRankConfig",
    "load_config",
    "MultiCollectionRetriever",
    "retrieve",
    "PriorityIndex",
    "ChunkMetadataSynthesizer",
    "AutoLinker",
    "QueryKeywordExtractor",
    "KeywordBoostCalculator",
]
