"""
Text embedding abstractions for persona-journal.

Provides the TextEmbedding protocol, provider adapters, and the
EmbeddingGateway that chains them:
- OpenAICompatibleEmbedding: Gemini, NVIDIA and Mistral via the OpenAI SDK
- CohereEmbedding: Cohere v2 embed API
"""

from persona_journal.embeddings.cohere_embedding import CohereEmbedding
from persona_journal.embeddings.gateway import (
    DEFAULT_EMBEDDING_ORDER,
    EmbeddingGateway,
    EmbeddingOutcome,
    ProviderAttempt,
)
from persona_journal.embeddings.openai_embedding import OpenAICompatibleEmbedding
from persona_journal.embeddings.protocol import TextEmbedding

__all__ = [
    "TextEmbedding",
    "CohereEmbedding",
    "OpenAICompatibleEmbedding",
    "EmbeddingGateway",
    "EmbeddingOutcome",
    "ProviderAttempt",
    "DEFAULT_EMBEDDING_ORDER",
]
