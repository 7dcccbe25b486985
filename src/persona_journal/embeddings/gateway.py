"""
Embedding gateway with an ordered provider-fallback chain.

The chain is the fixed provider order rotated to begin at the configured
provider, so every call tries each provider at most once, starting from
the default. When every provider fails the gateway returns an empty vector
rather than raising, so callers can skip the dependent read or write.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from persona_journal.config import KeyRotation, MemorySettings
from persona_journal.embeddings.protocol import TextEmbedding

logger = logging.getLogger(__name__)

DEFAULT_EMBEDDING_ORDER = ("gemini", "nvidia", "mistral", "cohere")


@dataclass
class ProviderAttempt:
    """One provider tried during a gateway call."""

    provider: str
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class EmbeddingOutcome:
    """
    Result of one gateway call.

    Attributes:
        vector: The embedding, empty when every provider failed
        provider: Name of the provider that produced it, if any
        attempts: Every provider tried, in order, with its error
    """

    vector: List[float] = field(default_factory=list)
    provider: Optional[str] = None
    attempts: List[ProviderAttempt] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.vector)


def rotate_order(order: Sequence[str], start: str) -> List[str]:
    """Rotate a provider order so it begins at start (unknown start keeps the order)."""
    order = list(order)
    if start not in order:
        return order
    index = order.index(start)
    return order[index:] + order[:index]


class EmbeddingGateway:
    """
    Wraps a set of embedding providers behind one fallback call.

    Example:
        >>> gateway = EmbeddingGateway({"nvidia": nvidia, "mistral": mistral})
        >>> vector = await gateway.embed("Met at the tavern.", settings)
        >>> if not vector:
        ...     pass  # no embedding available; skip the write
    """

    def __init__(
        self,
        providers: Mapping[str, TextEmbedding],
        order: Sequence[str] = DEFAULT_EMBEDDING_ORDER,
    ):
        """
        Initialize the gateway.

        Args:
            providers: Embedding providers keyed by name
            order: Fixed fallback order; providers not listed are appended
        """
        self.providers = dict(providers)
        self.order = list(order) + [name for name in self.providers if name not in order]

        logger.info(f"EmbeddingGateway initialized: order={self.order}")

    @classmethod
    def from_settings(cls, settings: MemorySettings, key_rotation: Optional[KeyRotation] = None):
        """Build a gateway with every built-in provider adapter."""
        from persona_journal.embeddings.cohere_embedding import CohereEmbedding
        from persona_journal.embeddings.openai_embedding import PRESETS, OpenAICompatibleEmbedding

        rotation = key_rotation or settings.key_rotation()
        providers = {name: OpenAICompatibleEmbedding.preset(name, rotation) for name in PRESETS}
        providers["cohere"] = CohereEmbedding(rotation)
        return cls(providers)

    def provider_chain(self, start: str) -> List[str]:
        """The providers a call starting at start will try, in order."""
        return rotate_order(self.order, start)

    async def embed_detailed(self, text: str, settings: MemorySettings) -> EmbeddingOutcome:
        """Embed text and report every provider attempt."""
        outcome = EmbeddingOutcome()
        if not text or not text.strip():
            logger.warning("Refusing to embed empty text")
            return outcome

        for name in self.provider_chain(settings.embedding_provider):
            provider = self.providers.get(name)
            if provider is None:
                outcome.attempts.append(ProviderAttempt(name, "not configured"))
                continue

            try:
                vector = await provider.embed(text)
            except Exception as e:
                logger.warning(f"Embedding with {name} failed, trying next provider: {e}")
                outcome.attempts.append(ProviderAttempt(name, str(e)))
                continue

            if not vector:
                logger.warning(f"Embedding with {name} returned an empty vector")
                outcome.attempts.append(ProviderAttempt(name, "empty vector"))
                continue

            outcome.attempts.append(ProviderAttempt(name))
            outcome.vector = list(vector)
            outcome.provider = name
            logger.debug(f"Embedded text with {name} ({len(outcome.vector)} dimensions)")
            return outcome

        errors = "; ".join(f"{a.provider}: {a.error}" for a in outcome.attempts)
        logger.error(f"All embedding providers failed ({errors})")
        return outcome

    async def embed(self, text: str, settings: MemorySettings) -> List[float]:
        """Embed text; returns an empty list when no provider succeeds."""
        outcome = await self.embed_detailed(text, settings)
        return outcome.vector
