"""OpenAI-compatible embedding adapter for persona-journal."""

import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from persona_journal.config import KeyRotation
from persona_journal.exceptions import ProviderError, ProviderUnavailableError

logger = logging.getLogger(__name__)

# Endpoints that speak the OpenAI embeddings API
PRESETS: Dict[str, Dict[str, Any]] = {
    "gemini": {
        "model": "gemini-embedding-001",
        "base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
    },
    "nvidia": {
        "model": "baai/bge-m3",
        "base_url": "https://integrate.api.nvidia.com/v1",
        "extra_body": {"truncate": "NONE"},
    },
    "mistral": {
        "model": "mistral-embed",
        "base_url": "https://api.mistral.ai/v1",
    },
}


class OpenAICompatibleEmbedding:
    """
    Embedding adapter for any endpoint compatible with OpenAI's embedding API.

    Presets cover Gemini, NVIDIA (bge-m3) and Mistral. API keys are taken
    from a KeyRotation on every call, so several keys per provider are used
    round-robin.

    Example:
        >>> rotation = MemorySettings().key_rotation()
        >>> embedder = OpenAICompatibleEmbedding.preset("nvidia", rotation)
        >>> vector = await embedder.embed("I like pizza")
    """

    def __init__(
        self,
        name: str,
        model: str,
        key_rotation: KeyRotation,
        base_url: Optional[str] = None,
        dimensions: Optional[int] = None,
        extra_body: Optional[Dict[str, Any]] = None,
        timeout: float = 30.0,
        max_retries: int = 2,
    ):
        """
        Initialize the embedder.

        Args:
            name: Provider name, also the KeyRotation key (e.g., "nvidia")
            model: Embedding model name
            key_rotation: Source of API keys
            base_url: Custom endpoint (None = official OpenAI)
            dimensions: Output dimension, for models that support it
            extra_body: Provider-specific request fields
            timeout: Request timeout in seconds
            max_retries: Number of retry attempts for failed requests
        """
        self._name = name
        self._model = model
        self._key_rotation = key_rotation
        self._base_url = base_url
        self._dimensions = dimensions
        self._extra_body = extra_body
        self._timeout = timeout
        self._max_retries = max_retries

    @classmethod
    def preset(cls, name: str, key_rotation: KeyRotation, **kwargs) -> "OpenAICompatibleEmbedding":
        """Build an embedder for one of the known providers in PRESETS."""
        if name not in PRESETS:
            raise ValueError(f"Unknown embedding preset: {name}")
        options = {**PRESETS[name], **kwargs}
        return cls(name=name, key_rotation=key_rotation, **options)

    @property
    def name(self) -> str:
        return self._name

    @property
    def model_name(self) -> str:
        return self._model

    async def embed(self, text: str) -> List[float]:
        """
        Generate an embedding.

        Raises:
            ProviderUnavailableError: If no API key is configured
            ProviderError: If the API request fails or returns no vector
        """
        api_key = self._key_rotation.next_key(self._name)
        if not api_key:
            raise ProviderUnavailableError(self._name, "API key is missing")

        kwargs: Dict[str, Any] = {"model": self._model, "input": [text], "encoding_format": "float"}
        if self._dimensions is not None:
            kwargs["dimensions"] = self._dimensions
        if self._extra_body:
            kwargs["extra_body"] = self._extra_body

        try:
            async with AsyncOpenAI(
                api_key=api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=self._max_retries,
            ) as client:
                response = await client.embeddings.create(**kwargs)
        except OpenAIError as e:
            raise ProviderError(self._name, f"embedding request failed: {e}") from e

        if not response.data:
            raise ProviderError(self._name, "embedding response contained no data")
        return list(response.data[0].embedding)
