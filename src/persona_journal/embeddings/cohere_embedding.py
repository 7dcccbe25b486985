"""Cohere embedding adapter for persona-journal."""

import logging
from typing import List, Optional

import httpx

from persona_journal.config import KeyRotation
from persona_journal.exceptions import ProviderError, ProviderUnavailableError
from persona_journal.http import post_json

logger = logging.getLogger(__name__)

COHERE_EMBED_URL = "https://api.cohere.com/v2/embed"


class CohereEmbedding:
    """Embedding adapter for Cohere's v2 embed API (float embeddings)."""

    def __init__(
        self,
        key_rotation: KeyRotation,
        model: str = "embed-v4.0",
        input_type: str = "classification",
        client: Optional[httpx.AsyncClient] = None,
        url: str = COHERE_EMBED_URL,
    ):
        self._key_rotation = key_rotation
        self._model = model
        self._input_type = input_type
        self._client = client
        self._url = url

    @property
    def name(self) -> str:
        return "cohere"

    @property
    def model_name(self) -> str:
        return self._model

    async def embed(self, text: str) -> List[float]:
        api_key = self._key_rotation.next_key(self.name)
        if not api_key:
            raise ProviderUnavailableError(self.name, "API key is missing")

        body = await post_json(
            self.name,
            self._url,
            api_key,
            {
                "texts": [text],
                "model": self._model,
                "input_type": self._input_type,
                "embedding_types": ["float"],
            },
            client=self._client,
        )

        # Cohere returns {"embeddings": {"float": [[...]]}}
        vectors = (body.get("embeddings") or {}).get("float") or []
        if not vectors or not isinstance(vectors[0], list):
            raise ProviderError(self.name, "invalid embedding returned")
        return vectors[0]
