"""
Text embedding protocol for persona-journal.

Provides a unified interface for embedding text into dense vectors
for semantic similarity search.
"""

from typing import List, Protocol

from typing_extensions import runtime_checkable


@runtime_checkable
class TextEmbedding(Protocol):
    """
    Protocol for text embedding providers.

    Providers are interchangeable members of a fallback chain, so they are
    not required to agree on dimensionality. A provider signals failure by
    raising (typically ProviderError); an empty vector is also treated as a
    failure by the gateway.

    Example:
        >>> embedder = OpenAICompatibleEmbedding.preset("nvidia", key_rotation)
        >>> vector = await embedder.embed("We met at the tavern")
        >>> len(vector)
        1024
    """

    @property
    def name(self) -> str:
        """
        Provider name used in the fallback order (e.g., "nvidia").
        """
        ...

    @property
    def model_name(self) -> str:
        """
        Identifier of the embedding model (e.g., "baai/bge-m3").
        """
        ...

    async def embed(self, text: str) -> List[float]:
        """
        Generate an embedding for a text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            ProviderUnavailableError: If the provider has no credentials
            ProviderError: If the provider call fails
        """
        ...
