# lorerank/retrieval/__init__.py
"""
Query-time retrieval: activation gate, pipeline steps and the orchestrator.

Usage:
    from lorerank.retrieval import MultiCollectionRetriever

    retriever = MultiCollectionRetriever(store, vector_client, config)
    results = retriever.retrieve("a dragon appears", ScopeContext())
"""

from .activation import activated_collections, conditions_met, evaluate_rule, is_active
from .orchestrator import MultiCollectionRetriever, build_steps, retrieve

__all__ = [
    "MultiCollectionRetriever",
    "build_steps",
    "retrieve",
    "activated_collections",
    "conditions_met",
    "evaluate_rule",
    "is_active",
]
