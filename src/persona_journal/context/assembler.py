"""
Prompt context assembly under a token budget.

Layout of the returned messages:

1. ``PERSONA:`` system message, never truncated
2. ``CURRENT SITUATION:`` system message, on the first turn only
3. ``ABOUT <USER>:`` system message with the user persona and relationship,
   when either is given
4. Memory section system message
5. As much recent history as fits, oldest to newest
6. The user's query

Whatever remains after the system blocks, query and a safety margin is
split 70/30 between memories and history. Unused memory budget goes to
history.
"""

import logging
import math
from datetime import datetime
from typing import List, Optional, Tuple

from casual_llm import ChatMessage, SystemMessage, UserMessage

from persona_journal.context.tokens import TokenEstimator
from persona_journal.models import MemoryRecord, PromptContext, RelationshipState
from persona_journal.utils.text import replace_user_placeholder, time_ago

logger = logging.getLogger(__name__)

SAFETY_MARGIN_TOKENS = 100
MEMORY_SHARE = 0.7
MIN_DIAGNOSTIC_BUDGET = 50
TRUNCATION_MARGIN_TOKENS = 10
IMPORTANT_MARKER_THRESHOLD = 0.7

MEMORY_HEADER = "MEMORIES (Important decisions and opinions you've expressed):\n"
NO_MEMORIES_TEXT = "MEMORIES: No previous memories relevant to current conversation."
DEFAULT_USER_PERSONA = "A person talking with you."
DEFAULT_RELATIONSHIP_TEXT = "You're still getting to know each other."


class ContextAssembler:
    """
    Builds the message list sent to the generator.

    Example:
        >>> assembler = ContextAssembler(TokenEstimator())
        >>> context = assembler.build_context(
        ...     persona_text, scenario_text, "hello", memories, history, token_budget=6000
        ... )
        >>> await llm.chat(context.messages)
    """

    def __init__(self, estimator: Optional[TokenEstimator] = None):
        self.estimator = estimator or TokenEstimator()

    def _memory_sub_lines(self, memory: MemoryRecord) -> List[str]:
        lines = []
        if memory.decisions:
            lines.append(f"  → Your decisions: {'; '.join(memory.decisions)}\n")
        if memory.participants:
            lines.append(f"  → Present: {', '.join(memory.participants)}\n")
        if memory.plot_elements:
            lines.append(f"  → Plot: {'; '.join(memory.plot_elements)}\n")
        return lines

    def format_memories(
        self, memories: List[MemoryRecord], max_tokens: int, now: Optional[datetime] = None
    ) -> Tuple[str, int]:
        """
        Format memories into a bulleted section of at most max_tokens.

        Memories with decisions come first, then by importance. If the first
        memory does not fit it is truncated and marked with "..."; any later
        memory that does not fit is omitted.

        Returns:
            The section text and the number of memories included. The text is
            empty when even the header, or the no-memories line, does not fit.
        """
        if not memories:
            if self.estimator.estimate(NO_MEMORIES_TEXT) > max_tokens:
                return "", 0
            return NO_MEMORIES_TEXT, 0

        text = MEMORY_HEADER
        used = self.estimator.estimate(text)
        if used > max_tokens:
            logger.warning(f"Memory budget ({max_tokens} tokens) too small for the memory header")
            return "", 0

        now = now or datetime.now()
        ordered = sorted(
            memories, key=lambda memory: (bool(memory.decisions), memory.importance), reverse=True
        )
        included = 0

        for memory in ordered:
            ago = time_ago(memory.timestamp, now)
            marker = "★ " if memory.importance > IMPORTANT_MARKER_THRESHOLD else ""
            line = f"• {marker}{ago}: {memory.summary}\n"
            cost = self.estimator.estimate(line)

            if used + cost > max_tokens:
                # Only the first memory is truncated; later ones are dropped
                if included == 0 and used < max_tokens:
                    available = max_tokens - used - TRUNCATION_MARGIN_TOKENS
                    if available > 0:
                        line = f"• {ago}: {memory.summary[: available * 4]}...\n"
                        text += line
                        used += self.estimator.estimate(line)
                        included += 1
                break

            text += line
            used += cost
            included += 1

            for sub_line in self._memory_sub_lines(memory):
                sub_cost = self.estimator.estimate(sub_line)
                if used + sub_cost <= max_tokens:
                    text += sub_line
                    used += sub_cost

        logger.debug(f"Formatted {included} memories using {used} tokens (limit: {max_tokens})")
        return text, included

    def format_user_block(
        self, user_name: str, user_persona: str = "", relationship: Optional[RelationshipState] = None
    ) -> str:
        """Describe the user and where the persona stands with them."""
        persona = DEFAULT_USER_PERSONA
        if user_persona:
            persona = replace_user_placeholder(user_persona, user_name)
        if relationship is not None:
            standing = f"{relationship.status} (sentiment {relationship.sentiment:+.2f})"
        else:
            standing = DEFAULT_RELATIONSHIP_TEXT
        return f"ABOUT {user_name.upper()}:\n{persona}\nYour relationship: {standing}"

    def build_context(
        self,
        persona_text: str,
        scenario_text: str,
        query: str,
        memories: List[MemoryRecord],
        history_turns: List[ChatMessage],
        token_budget: int,
        user_name: str = "User",
        history_limit: int = 15,
        user_persona: str = "",
        relationship: Optional[RelationshipState] = None,
    ) -> PromptContext:
        """
        Assemble persona, scenario, memories, history and query within token_budget.

        The scenario is only included when history_turns is empty. The
        persona is always included in full, even if it alone exceeds the
        budget. The ``ABOUT <USER>:`` block is added when user_persona or
        relationship is given and counts against the budget before the
        memory split.
        """
        messages: List[ChatMessage] = []
        used = 0

        if persona_text:
            content = f"PERSONA:\n{replace_user_placeholder(persona_text, user_name)}"
            messages.append(SystemMessage(content=content))
            used += self.estimator.estimate(content)

        if scenario_text and not history_turns:
            content = f"CURRENT SITUATION:\n{replace_user_placeholder(scenario_text, user_name)}"
            messages.append(SystemMessage(content=content))
            used += self.estimator.estimate(content)

        if user_persona or relationship is not None:
            content = self.format_user_block(user_name, user_persona, relationship)
            messages.append(SystemMessage(content=content))
            used += self.estimator.estimate(content)

        remaining = token_budget - used - self.estimator.estimate(query) - SAFETY_MARGIN_TOKENS
        memory_budget = max(0, math.floor(remaining * MEMORY_SHARE))

        memory_text, memories_included = self.format_memories(memories, memory_budget)
        memory_tokens = self.estimator.estimate(memory_text)
        logger.info(f"Memory context: {len(memories)} memories, {memory_tokens} tokens")

        defect = bool(memories) and memory_budget >= MIN_DIAGNOSTIC_BUDGET and memories_included == 0
        if defect:
            logger.warning(
                f"{len(memories)} memories retrieved but none fit the memory section "
                f"(budget={memory_budget} tokens), check the token budget"
            )

        if memory_text:
            messages.append(SystemMessage(content=memory_text))

        history = self._select_history(
            history_turns, max(0, remaining - memory_tokens), history_limit
        )
        messages.extend(history)
        messages.append(UserMessage(content=query))

        return PromptContext(
            messages=messages,
            memory_token_budget=memory_budget,
            memory_tokens=memory_tokens,
            memories_included=memories_included,
            history_included=len(history),
            memory_budget_defect=defect,
        )

    def _select_history(
        self, history_turns: List[ChatMessage], budget: int, limit: int
    ) -> List[ChatMessage]:
        """Newest turns that fit the budget and limit, returned oldest first."""
        selected: List[ChatMessage] = []
        used = 0
        for message in reversed(history_turns):
            if len(selected) >= limit:
                break
            cost = self.estimator.estimate(message.content or "")
            if used + cost > budget:
                break
            selected.append(message)
            used += cost
        selected.reverse()
        return selected
