"""
Memory retrieval: query formulation, vector search and reranking.
"""

from persona_journal.retrieval.query import QueryFormulation, QueryFormulator
from persona_journal.retrieval.rerank import RerankGateway, Reranker, RerankResult
from persona_journal.retrieval.retriever import MemoryRetriever, filter_memories

__all__ = [
    "QueryFormulation",
    "QueryFormulator",
    "MemoryRetriever",
    "filter_memories",
    "RerankGateway",
    "Reranker",
    "RerankResult",
]
