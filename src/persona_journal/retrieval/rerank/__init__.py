"""Reranking providers and the fallback gateway that chains them."""

from persona_journal.retrieval.rerank.cohere import CohereReranker
from persona_journal.retrieval.rerank.gateway import (
    DEFAULT_RERANK_ORDER,
    RerankGateway,
    apply_rerank_results,
)
from persona_journal.retrieval.rerank.jina import JinaReranker
from persona_journal.retrieval.rerank.nvidia import NvidiaReranker
from persona_journal.retrieval.rerank.protocol import Reranker, RerankResult

__all__ = [
    "Reranker",
    "RerankResult",
    "JinaReranker",
    "CohereReranker",
    "NvidiaReranker",
    "RerankGateway",
    "DEFAULT_RERANK_ORDER",
    "apply_rerank_results",
]
