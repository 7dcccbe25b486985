"""Cohere reranker adapter."""

import logging
from typing import List, Optional

import httpx

from persona_journal.config import KeyRotation
from persona_journal.exceptions import ProviderError, ProviderUnavailableError
from persona_journal.http import post_json
from persona_journal.retrieval.rerank.protocol import RerankResult

logger = logging.getLogger(__name__)

COHERE_RERANK_URL = "https://api.cohere.com/v2/rerank"


class CohereReranker:
    """Reranks with Cohere's v2 rerank API (``rerank-v3.5`` by default)."""

    def __init__(
        self,
        key_rotation: KeyRotation,
        model: str = "rerank-v3.5",
        max_documents: int = 20,
        client: Optional[httpx.AsyncClient] = None,
        url: str = COHERE_RERANK_URL,
    ):
        self._key_rotation = key_rotation
        self._model = model
        self._max_documents = max_documents
        self._client = client
        self._url = url

    @property
    def name(self) -> str:
        return "cohere"

    async def rerank(self, query: str, documents: List[str]) -> List[RerankResult]:
        api_key = self._key_rotation.next_key(self.name)
        if not api_key:
            raise ProviderUnavailableError(self.name, "API key is missing")

        body = await post_json(
            self.name,
            self._url,
            api_key,
            {
                "model": self._model,
                "query": query,
                "documents": documents,
                "top_n": min(len(documents), self._max_documents),
            },
            client=self._client,
        )

        results = body.get("results")
        if not isinstance(results, list):
            raise ProviderError(self.name, "invalid response format")

        return [
            RerankResult(index=result["index"], score=result.get("relevance_score", 0.0))
            for result in results
        ]
