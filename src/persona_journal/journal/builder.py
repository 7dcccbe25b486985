"""
Journal entry creation.

A journal entry is built from one chunk of conversation:

1. Threshold check against ``settings.journal_frequency``
2. LLM analysis with a structured-extraction prompt
3. JSON extraction and repair, falling back to heuristics
4. Field validation
5. Relationship update
6. Embedding and persistence

Any failure before persistence yields "no entry" (None) rather than an
exception, so bulk regeneration can carry on with the next chunk.
"""

import asyncio
import logging
import math
from numbers import Real
from typing import Any, Callable, Dict, List, Optional

from casual_llm import ChatMessage, LLMProvider, UserMessage
from pydantic import ValidationError

from persona_journal.config import MemorySettings
from persona_journal.embeddings.gateway import EmbeddingGateway
from persona_journal.exceptions import VectorStoreError
from persona_journal.journal.heuristics import heuristic_analysis
from persona_journal.journal.json_repair import parse_analysis_json
from persona_journal.journal.prompts import JOURNAL_ANALYSIS_PROMPT, format_conversation
from persona_journal.journal.relationship import update_relationship
from persona_journal.models import (
    Emotions,
    JournalAnalysis,
    JournalResult,
    MemoryKind,
    MemoryRecord,
    OwnerState,
    PersonaProfile,
    RecycleProgress,
    RecycleResult,
    clamp_importance,
)
from persona_journal.storage.protocols import VectorStore
from persona_journal.utils.text import replace_user_placeholder

logger = logging.getLogger(__name__)

SEED_SUMMARY_LENGTH = 200

ProgressCallback = Callable[[RecycleProgress], None]


def normalize_importance(importance: float) -> float:
    """Map a 1-10 importance score onto [0.1, 1.0]."""
    return clamp_importance(importance / 10.0)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_analysis(
    data: Dict[str, Any], character: str, user_name: str
) -> Optional[JournalAnalysis]:
    """
    Accept a parsed analysis only if every required field has the right type.

    Optional list fields default to empty, except participants which
    defaults to the character and the user.
    """
    problems = []
    if not isinstance(data.get("summary"), str) or not data["summary"].strip():
        problems.append("summary")
    if not isinstance(data.get("emotions"), dict):
        problems.append("emotions")
    for key in ("decisions", "topics"):
        if not isinstance(data.get(key), list):
            problems.append(key)
    for key in ("importance", "relationshipDelta"):
        if not _is_number(data.get(key)):
            problems.append(key)

    if problems:
        logger.warning(f"Analysis result missing or invalid fields: {', '.join(problems)}")
        return None

    def _strings(key: str) -> List[str]:
        value = data.get(key)
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if item is not None and str(item).strip()]

    try:
        return JournalAnalysis(
            summary=data["summary"].strip(),
            emotions=Emotions.model_validate(data["emotions"]),
            decisions=_strings("decisions"),
            topics=_strings("topics"),
            importance=float(data["importance"]),
            relationship_delta=float(data["relationshipDelta"]),
            conversation_drivers=_strings("conversationDrivers"),
            participants=_strings("participants") or [character, user_name],
            plot_elements=_strings("plotElements"),
            source="llm",
        )
    except ValidationError as e:
        logger.warning(f"Analysis result failed validation: {e}")
        return None


class JournalBuilder:
    """
    Builds journal entries and seed memories for a persona.

    Example:
        >>> builder = JournalBuilder(llm, gateway, store)
        >>> result = await builder.create_entry(messages, OwnerState(name="Aria"), settings)
        >>> if result:
        ...     save_relationship(result.relationship)
    """

    def __init__(self, llm: LLMProvider, gateway: EmbeddingGateway, store: VectorStore):
        self.llm = llm
        self.gateway = gateway
        self.store = store

    async def analyze(
        self, messages: List[ChatMessage], owner_state: OwnerState, settings: MemorySettings
    ) -> Optional[JournalAnalysis]:
        """
        Run the analysis prompt over a chunk and return a validated result.

        Falls back to heuristic extraction when no valid JSON comes back.
        Returns None if the generator fails or nothing usable is found.
        """
        prompt = JOURNAL_ANALYSIS_PROMPT.format(
            character=owner_state.name,
            user=settings.user_name,
            conversation=format_conversation(messages, owner_state.name, settings.user_name),
        )

        try:
            logger.debug(f"Analyzing {len(messages)} messages for {owner_state.name}")
            response = await self.llm.chat(
                messages=[UserMessage(content=prompt)],
                response_format="json",
                temperature=settings.analysis_temperature,
            )
        except Exception as e:
            logger.error(f"Journal analysis LLM call failed: {e}")
            return None

        raw = response.content or ""
        data = parse_analysis_json(raw)
        if data is not None:
            analysis = validate_analysis(data, owner_state.name, settings.user_name)
            if analysis is not None:
                return analysis

        logger.info("Falling back to heuristic journal analysis")
        return heuristic_analysis(raw, owner_state.name, settings.user_name)

    async def create_entry(
        self, messages: List[ChatMessage], owner_state: OwnerState, settings: MemorySettings
    ) -> Optional[JournalResult]:
        """
        Build and store one journal entry.

        Returns:
            The stored record and updated relationship, or None when the
            chunk is below the journal frequency or any step fails
        """
        if len(messages) < settings.journal_frequency:
            logger.debug(
                f"Not journaling yet for {owner_state.name}: "
                f"{len(messages)}/{settings.journal_frequency} messages"
            )
            return None

        analysis = await self.analyze(messages, owner_state, settings)
        if analysis is None:
            logger.warning(f"Skipping journal entry for {owner_state.name}: analysis failed")
            return None

        relationship = update_relationship(owner_state.sentiment, analysis.relationship_delta)

        vector = await self.gateway.embed(analysis.summary, settings)
        if not vector:
            logger.error(f"Skipping journal entry for {owner_state.name}: no embedding available")
            return None

        record = MemoryRecord(
            owner=owner_state.name,
            summary=analysis.summary,
            importance=normalize_importance(analysis.importance),
            embedding=vector,
            kind="journal",
            emotions=analysis.emotions,
            decisions=analysis.decisions,
            topics=analysis.topics,
            participants=analysis.participants,
            plot_elements=analysis.plot_elements,
            conversation_drivers=analysis.conversation_drivers,
            relationship_delta=analysis.relationship_delta,
        )

        try:
            self.store.insert(vector, record)
        except VectorStoreError as e:
            logger.error(f"Failed to store journal entry for {owner_state.name}: {e}")
            return None

        logger.info(
            f"Journal entry created for {owner_state.name} "
            f"(importance={record.importance:.2f}, source={analysis.source}, "
            f"relationship={relationship.status})"
        )
        return JournalResult(record=record, relationship=relationship)

    async def store_seed_memories(
        self, profile: PersonaProfile, settings: MemorySettings
    ) -> List[MemoryKind]:
        """
        Store the persona text and first message as top-importance memories.

        Returns:
            The kinds that were stored; a seed that cannot be embedded is skipped
        """
        stored: List[MemoryKind] = []
        seeds = (("persona", profile.persona), ("firstMessage", profile.first_message))

        for kind, text in seeds:
            text = replace_user_placeholder(text, settings.user_name)
            if not text or not text.strip():
                continue

            vector = await self.gateway.embed(text, settings)
            if not vector:
                logger.warning(f"Could not embed {kind} seed memory for {profile.name}")
                continue

            record = MemoryRecord(
                owner=profile.name,
                summary=text[:SEED_SUMMARY_LENGTH],
                importance=1.0,
                embedding=vector,
                kind=kind,
            )
            try:
                self.store.insert(vector, record)
            except VectorStoreError as e:
                logger.error(f"Failed to store {kind} seed memory for {profile.name}: {e}")
                continue
            stored.append(kind)

        logger.info(f"Stored seed memories for {profile.name}: {stored}")
        return stored

    async def recycle(
        self,
        owner_state: OwnerState,
        history: List[ChatMessage],
        profile: PersonaProfile,
        settings: MemorySettings,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> RecycleResult:
        """
        Rebuild an owner's memories from its full chat history.

        Clears the owner, re-seeds, then journals the history in chunks of
        ``journal_frequency`` messages, pausing ``recycle_delay_seconds``
        between chunks. A failed chunk is skipped; the relationship carries
        over from one successful chunk to the next.
        """

        def report(step, message, current=0, total=0):
            if progress_callback is None:
                return
            try:
                progress_callback(
                    RecycleProgress(step=step, message=message, current=current, total=total)
                )
            except Exception as e:
                logger.warning(f"Recycle progress callback failed: {e}")

        report("clearing", f"Clearing memories for {owner_state.name}")
        try:
            removed = self.store.delete_by_owner(owner_state.name)
        except VectorStoreError as e:
            logger.error(f"Recycle aborted for {owner_state.name}: {e}")
            return RecycleResult(success=False, error=str(e))
        logger.info(f"Recycling {owner_state.name}: removed {removed} memories")

        report("seeding", "Storing persona and first message")
        created = len(await self.store_seed_memories(profile, settings))

        frequency = settings.journal_frequency
        chunks = [history[i : i + frequency] for i in range(0, len(history), frequency)]
        total = len(chunks)
        state = owner_state.model_copy()
        relationship = None
        processed = 0

        for number, chunk in enumerate(chunks, start=1):
            report("journaling", f"Creating journal entry {number} of {total}", number, total)
            try:
                result = await self.create_entry(chunk, state, settings)
            except Exception as e:
                logger.error(f"Recycle chunk {number}/{total} for {owner_state.name} failed: {e}")
                result = None

            processed += 1
            if result is not None:
                created += 1
                relationship = result.relationship
                state = state.model_copy(update={"sentiment": relationship.sentiment})

            if number < total and settings.recycle_delay_seconds > 0:
                await asyncio.sleep(settings.recycle_delay_seconds)

        report("done", f"Created {created} memories", total, total)
        logger.info(f"Recycled {owner_state.name}: {created} memories from {total} chunks")
        return RecycleResult(
            success=True,
            memories_created=created,
            chunks_processed=processed,
            relationship=relationship,
        )
