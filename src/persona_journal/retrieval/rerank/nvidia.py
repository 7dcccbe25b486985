"""NVIDIA NIM reranker adapter."""

import logging
from typing import List, Optional

import httpx

from persona_journal.config import KeyRotation
from persona_journal.exceptions import ProviderError, ProviderUnavailableError
from persona_journal.http import post_json
from persona_journal.retrieval.rerank.protocol import RerankResult

logger = logging.getLogger(__name__)

NVIDIA_RERANK_URL = "https://ai.api.nvidia.com/v1/retrieval/nvidia/reranking"


class NvidiaReranker:
    """
    Reranks with NVIDIA's retrieval reranking endpoint.

    Scores are the model's raw logits, so they are only comparable within
    one response.
    """

    def __init__(
        self,
        key_rotation: KeyRotation,
        model: str = "nv-rerank-qa-mistral-4b:1",
        client: Optional[httpx.AsyncClient] = None,
        url: str = NVIDIA_RERANK_URL,
    ):
        self._key_rotation = key_rotation
        self._model = model
        self._client = client
        self._url = url

    @property
    def name(self) -> str:
        return "nvidia"

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
                "query": {"text": query},
                "passages": [{"text": document} for document in documents],
            },
            client=self._client,
        )

        rankings = body.get("rankings")
        if not isinstance(rankings, list):
            raise ProviderError(self.name, "invalid response format")

        return [
            RerankResult(index=ranking["index"], score=ranking.get("logit", ranking.get("score", 0.0)))
            for ranking in rankings
        ]
