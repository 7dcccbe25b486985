"""Prompt context assembly and token estimation."""

from persona_journal.context.assembler import (
    MEMORY_HEADER,
    NO_MEMORIES_TEXT,
    ContextAssembler,
)
from persona_journal.context.tokens import TokenEstimator, heuristic_token_count

__all__ = [
    "ContextAssembler",
    "TokenEstimator",
    "heuristic_token_count",
    "MEMORY_HEADER",
    "NO_MEMORIES_TEXT",
]
