"""
Reranking with an ordered provider-fallback chain.

Reranking only improves ordering. When every provider fails the candidates
come back in their original similarity order.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from persona_journal.config import KeyRotation, MemorySettings
from persona_journal.embeddings.gateway import rotate_order
from persona_journal.models import MemoryRecord
from persona_journal.retrieval.rerank.protocol import Reranker, RerankResult

logger = logging.getLogger(__name__)

DEFAULT_RERANK_ORDER = ("jina", "cohere", "nvidia")


def apply_rerank_results(
    memories: List[MemoryRecord], results: List[RerankResult]
) -> List[MemoryRecord]:
    """
    Reorder memories by rerank score, highest first.

    Out-of-range and repeated indices are dropped. Memories the provider did
    not score are left out.
    """
    scored: Dict[int, float] = {}
    for result in results:
        if 0 <= result.index < len(memories) and result.index not in scored:
            scored[result.index] = result.score

    ranked = sorted(scored.items(), key=lambda item: item[1], reverse=True)
    return [memories[index].model_copy(update={"rerank_score": score}) for index, score in ranked]


class RerankGateway:
    """
    Wraps reranking providers behind one fallback call.

    Example:
        >>> gateway = RerankGateway.from_settings(settings)
        >>> memories = await gateway.rerank("the tavern", memories, settings)
    """

    def __init__(
        self,
        rerankers: Mapping[str, Reranker],
        order: Sequence[str] = DEFAULT_RERANK_ORDER,
    ):
        self.rerankers = dict(rerankers)
        self.order = list(order) + [name for name in self.rerankers if name not in order]

    @classmethod
    def from_settings(cls, settings: MemorySettings, key_rotation: Optional[KeyRotation] = None):
        """Build a gateway with the Jina, Cohere and NVIDIA adapters."""
        from persona_journal.retrieval.rerank.cohere import CohereReranker
        from persona_journal.retrieval.rerank.jina import JinaReranker
        from persona_journal.retrieval.rerank.nvidia import NvidiaReranker

        rotation = key_rotation or settings.key_rotation()
        return cls(
            {
                "jina": JinaReranker(rotation),
                "cohere": CohereReranker(rotation),
                "nvidia": NvidiaReranker(rotation),
            }
        )

    def provider_chain(self, start: str) -> List[str]:
        return rotate_order(self.order, start)

    async def rerank(
        self, query: str, memories: List[MemoryRecord], settings: MemorySettings
    ) -> List[MemoryRecord]:
        """Rerank memories against query; original order if reranking is off or fails."""
        if not memories or not settings.enable_reranking:
            return memories

        documents = [memory.summary for memory in memories]
        chain = self.provider_chain(settings.reranking_provider)
        logger.debug(f"Reranking {len(memories)} memories, providers in order: {chain}")

        for name in chain:
            reranker = self.rerankers.get(name)
            if reranker is None:
                continue

            try:
                results = await reranker.rerank(query, documents)
            except Exception as e:
                logger.warning(f"Reranking with {name} failed: {e}")
                continue

            reranked = apply_rerank_results(memories, results)
            if not reranked:
                logger.warning(f"Reranking with {name} returned no usable results")
                continue

            logger.info(f"Reranked {len(reranked)} memories using {name}")
            return reranked

        logger.error("All reranking providers failed, keeping similarity order")
        return memories
