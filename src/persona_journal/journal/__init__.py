"""
Journal creation: LLM analysis of conversation chunks into memory records.

The JSON repair rules and heuristic extractors are exposed so they can be
used and tested on their own.
"""

from persona_journal.journal.builder import JournalBuilder, normalize_importance, validate_analysis
from persona_journal.journal.heuristics import heuristic_analysis
from persona_journal.journal.json_repair import parse_analysis_json, repair_json
from persona_journal.journal.relationship import (
    clamp_sentiment,
    status_for_sentiment,
    update_relationship,
)

__all__ = [
    "JournalBuilder",
    "normalize_importance",
    "validate_analysis",
    "heuristic_analysis",
    "parse_analysis_json",
    "repair_json",
    "clamp_sentiment",
    "status_for_sentiment",
    "update_relationship",
]
