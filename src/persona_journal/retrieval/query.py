"""
Query formulation for memory retrieval.

Strategies (``settings.query_method``):
- plain: embed the current message verbatim
- llm-summary: embed an LLM summary of the last few turns
- hyde: embed a hypothetical journal entry relevant to the message
- average: embed the last user and assistant turns and average them

Each LLM strategy falls back to the text the previous step produced, and
average falls back to plain.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from casual_llm import ChatMessage, LLMProvider, UserMessage

from persona_journal.config import MemorySettings
from persona_journal.embeddings.gateway import EmbeddingGateway

logger = logging.getLogger(__name__)

SUMMARY_TURNS = 4

SUMMARY_PROMPT = """Summarize the following recent conversation context in 1-2 sentences, focusing on what is most relevant for memory retrieval for the user's last message ("{message}"):
{context}"""

HYDE_PROMPT = """Given the user's message: "{message}", and the character {character}, write a brief, hypothetical journal entry summary that would be perfectly relevant to this message."""


@dataclass
class QueryFormulation:
    """The text and vector a retrieval searches with."""

    text: str
    vector: List[float] = field(default_factory=list)
    method: str = "plain"


class QueryFormulator:
    """Turns the current message and recent history into a query vector."""

    def __init__(self, llm: LLMProvider, gateway: EmbeddingGateway):
        self.llm = llm
        self.gateway = gateway

    async def _generate(self, prompt: str, temperature: float) -> Optional[str]:
        response = await self.llm.chat(
            messages=[UserMessage(content=prompt)],
            response_format="text",
            temperature=temperature,
        )
        text = (response.content or "").strip()
        return text or None

    async def summarize_recent(
        self, current_message: str, recent_history: List[ChatMessage], settings: MemorySettings
    ) -> Optional[str]:
        """Summarize the last few turns for retrieval; None on failure or short history."""
        if len(recent_history) < 2:
            return None

        context = "\n".join(
            f"{message.role}: {message.content or ''}" for message in recent_history[-SUMMARY_TURNS:]
        )
        try:
            return await self._generate(
                SUMMARY_PROMPT.format(message=current_message, context=context),
                settings.summary_temperature,
            )
        except Exception as e:
            logger.warning(f"LLM summary for query embedding failed, falling back to plain: {e}")
            return None

    async def hypothetical_entry(
        self, current_message: str, character: str, settings: MemorySettings
    ) -> Optional[str]:
        """Write a hypothetical journal summary relevant to the message; None on failure."""
        try:
            return await self._generate(
                HYDE_PROMPT.format(message=current_message, character=character),
                settings.hyde_temperature,
            )
        except Exception as e:
            logger.warning(f"HyDE for query embedding failed, keeping previous query text: {e}")
            return None

    async def average_vector(
        self, recent_history: List[ChatMessage], settings: MemorySettings
    ) -> List[float]:
        """
        Mean of the last user turn's and last assistant turn's embeddings.

        Returns an empty list unless both embed and have the same length.
        """
        last_user = next((m for m in reversed(recent_history) if m.role == "user"), None)
        last_assistant = next((m for m in reversed(recent_history) if m.role == "assistant"), None)
        if last_user is None or last_assistant is None:
            return []

        user_vector = await self.gateway.embed(last_user.content or "", settings)
        assistant_vector = await self.gateway.embed(last_assistant.content or "", settings)
        if not user_vector or not assistant_vector or len(user_vector) != len(assistant_vector):
            logger.debug("Cannot average turn embeddings, falling back to plain")
            return []

        mean = (np.asarray(user_vector) + np.asarray(assistant_vector)) / 2.0
        return mean.tolist()

    async def formulate(
        self,
        current_message: str,
        character: str,
        recent_history: List[ChatMessage],
        settings: MemorySettings,
    ) -> QueryFormulation:
        """Build the query for one retrieval; the vector is empty if embedding failed."""
        method = settings.query_method
        text = current_message
        used = "plain"

        if method == "llm-summary":
            summary = await self.summarize_recent(current_message, recent_history, settings)
            if summary:
                text, used = summary, "llm-summary"

        if method == "hyde" or settings.hyde_enabled:
            hypothetical = await self.hypothetical_entry(current_message, character, settings)
            if hypothetical:
                text, used = hypothetical, "hyde"

        if method == "average" and len(recent_history) > 1:
            vector = await self.average_vector(recent_history, settings)
            if vector:
                return QueryFormulation(text=text, vector=vector, method="average")

        logger.debug(f"Query formulated with {used}: '{text[:100]}'")
        vector = await self.gateway.embed(text, settings)
        return QueryFormulation(text=text, vector=vector, method=used)
