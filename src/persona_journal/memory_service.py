from typing import List, Optional

from casual_llm import ChatMessage, LLMProvider

from persona_journal.config import MemorySettings
from persona_journal.context import ContextAssembler, TokenEstimator
from persona_journal.embeddings import EmbeddingGateway
from persona_journal.exceptions import VectorStoreError
from persona_journal.journal import JournalBuilder
from persona_journal.journal.builder import ProgressCallback
from persona_journal.models import (
    JournalResult,
    MemoryKind,
    MemoryRecord,
    OwnerState,
    PersonaProfile,
    PromptContext,
    RecycleResult,
    RelationshipState,
)
from persona_journal.retrieval import MemoryRetriever, QueryFormulator, RerankGateway
from persona_journal.storage import VectorStore
import logging

logger = logging.getLogger(__name__)


class JournalMemoryService:
    def __init__(
        self,
        store: VectorStore,
        gateway: EmbeddingGateway,
        llm: LLMProvider,
        reranker: Optional[RerankGateway] = None,
        estimator: Optional[TokenEstimator] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.llm = llm
        self.builder = JournalBuilder(llm, gateway, store)
        self.retriever = MemoryRetriever(store, QueryFormulator(llm, gateway), reranker)
        self.assembler = ContextAssembler(estimator)

    @classmethod
    def from_settings(
        cls, store: VectorStore, llm: LLMProvider, settings: MemorySettings
    ) -> "JournalMemoryService":
        """Wire every built-in embedding and reranking provider, sharing one key rotation."""
        rotation = settings.key_rotation()
        return cls(
            store,
            EmbeddingGateway.from_settings(settings, rotation),
            llm,
            reranker=RerankGateway.from_settings(settings, rotation),
        )

    async def create_journal_entry(
        self,
        message_chunk: List[ChatMessage],
        owner_state: OwnerState,
        settings: MemorySettings,
    ) -> Optional[JournalResult]:
        return await self.builder.create_entry(message_chunk, owner_state, settings)

    async def retrieve_relevant_memories(
        self,
        query: str,
        owner: str,
        limit: int,
        settings: MemorySettings,
        recent_history: Optional[List[ChatMessage]] = None,
    ) -> List[MemoryRecord]:
        return await self.retriever.retrieve(query, owner, limit, recent_history or [], settings)

    def build_prompt_context(
        self,
        persona: str,
        scenario: str,
        query: str,
        memories: List[MemoryRecord],
        history_turns: List[ChatMessage],
        token_budget: int,
        user_name: str = "User",
        history_limit: int = 15,
        user_persona: str = "",
        relationship: Optional[RelationshipState] = None,
    ) -> PromptContext:
        return self.assembler.build_context(
            persona,
            scenario,
            query,
            memories,
            history_turns,
            token_budget,
            user_name=user_name,
            history_limit=history_limit,
            user_persona=user_persona,
            relationship=relationship,
        )

    def clear_memories_for_owner(self, owner: str) -> int:
        try:
            return self.store.delete_by_owner(owner)
        except VectorStoreError as e:
            logger.error(f"Failed to clear memories for owner={owner}: {e}")
            raise

    async def store_seed_memories(
        self, profile: PersonaProfile, settings: MemorySettings
    ) -> List[MemoryKind]:
        return await self.builder.store_seed_memories(profile, settings)

    async def recycle_memories(
        self,
        owner_state: OwnerState,
        history: List[ChatMessage],
        profile: PersonaProfile,
        settings: MemorySettings,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> RecycleResult:
        return await self.builder.recycle(owner_state, history, profile, settings, progress_callback)
