"""
Memory retrieval for one owner.

Candidates are fetched with twice the requested limit so the reranker has
headroom, filtered strictly by owner, optionally reranked, then truncated.
"""

import logging
from typing import List, Literal, Optional

from casual_llm import ChatMessage

from persona_journal.config import MemorySettings
from persona_journal.exceptions import VectorStoreError
from persona_journal.models import MemoryRecord
from persona_journal.retrieval.query import QueryFormulator
from persona_journal.retrieval.rerank.gateway import RerankGateway
from persona_journal.storage.protocols import VectorStore

logger = logging.getLogger(__name__)

MemoryFilter = Literal["all", "important", "recent"]

IMPORTANT_THRESHOLD = 0.7
RECENT_COUNT = 3


def filter_memories(memories: List[MemoryRecord], mode: MemoryFilter = "all") -> List[MemoryRecord]:
    """
    Narrow retrieved memories for display.

    Args:
        memories: Retrieved memories
        mode: "all", "important" (importance > 0.7) or "recent" (3 newest)
    """
    if mode == "all":
        return list(memories)
    if mode == "important":
        return [memory for memory in memories if memory.importance > IMPORTANT_THRESHOLD]
    if mode == "recent":
        return sorted(memories, key=lambda memory: memory.timestamp, reverse=True)[:RECENT_COUNT]
    raise ValueError(f"Unknown memory filter: {mode}")


class MemoryRetriever:
    """
    Retrieves the memories most relevant to the current message.

    Example:
        >>> retriever = MemoryRetriever(store, QueryFormulator(llm, gateway))
        >>> memories = await retriever.retrieve("hello", "Aria", 5, history, settings)
    """

    def __init__(
        self,
        store: VectorStore,
        formulator: QueryFormulator,
        reranker: Optional[RerankGateway] = None,
    ):
        self.store = store
        self.formulator = formulator
        self.reranker = reranker

    async def retrieve(
        self,
        current_message: str,
        owner: str,
        limit: int,
        recent_history: List[ChatMessage],
        settings: MemorySettings,
    ) -> List[MemoryRecord]:
        """
        Return up to limit memories of owner, most relevant first.

        Returns an empty list without any provider call when retrieval is
        disabled or limit <= 0, and an empty list when the query cannot be
        embedded or the store fails.
        """
        if not settings.enable_retrieval or limit <= 0:
            return []

        query = await self.formulator.formulate(current_message, owner, recent_history, settings)
        if not query.vector:
            logger.error(f"No query embedding for owner={owner}, returning no memories")
            return []

        try:
            hits = self.store.query(query.vector, limit * 2, owner=owner)
        except VectorStoreError as e:
            logger.error(f"Memory query failed for owner={owner}: {e}")
            return []

        memories = [
            hit.record.model_copy(update={"score": hit.score})
            for hit in hits
            if hit.record.owner == owner
        ]

        if self.reranker is not None and settings.enable_reranking and memories:
            memories = await self.reranker.rerank(current_message, memories, settings)

        memories = memories[:limit]
        logger.info(
            f"Retrieved {len(memories)} memories for owner={owner} (query method={query.method})"
        )
        return memories
