"""
Heuristic journal analysis used when the generator's JSON cannot be parsed.

Each extractor works on the raw response text. Explicit ``key: value``
fragments left in a half-broken JSON reply are honored first; otherwise
keyword lists decide. Every function is independent so each branch can be
tested on its own.
"""

import logging
import re
from typing import List, Optional

from persona_journal.models import Emotions, JournalAnalysis

logger = logging.getLogger(__name__)

MIN_SUMMARY_LENGTH = 20
MAX_SUMMARY_LENGTH = 300
DEFAULT_IMPORTANCE = 5
MAX_HEURISTIC_DELTA = 0.3

HIGH_IMPORTANCE_KEYWORDS = [
    "decided", "vowed", "swore", "promised", "revealed", "confessed",
    "betrayed", "attacked", "kissed", "died", "secret", "never forget",
]
LOW_IMPORTANCE_KEYWORDS = ["small talk", "chatted", "greeted", "casual", "idle", "nothing much"]

POSITIVE_KEYWORDS = [
    "happy", "glad", "laughed", "smiled", "grateful", "thanked", "trust",
    "friendly", "warm", "enjoyed", "comforted", "helped", "love", "kind",
]
NEGATIVE_KEYWORDS = [
    "angry", "annoyed", "upset", "sad", "afraid", "suspicious", "distrust",
    "insulted", "threatened", "argued", "hate", "cold", "betrayed", "hostile",
]

DECISION_KEYWORDS = [
    "decided", "chose", "refused", "agreed", "promised", "declared",
    "rejected", "insisted", "resolved", "will ",
]

TOPIC_KEYWORDS = {
    "combat": ["fight", "sword", "battle", "attack", "weapon"],
    "romance": ["love", "kiss", "date", "romance", "heart"],
    "travel": ["journey", "travel", "road", "map", "voyage"],
    "trust": ["trust", "betray", "secret", "lie", "honest"],
    "family": ["family", "mother", "father", "sister", "brother"],
    "magic": ["magic", "spell", "wizard", "ritual", "curse"],
    "food": ["food", "meal", "ale", "drink", "tavern", "dinner"],
    "work": ["job", "work", "quest", "task", "contract"],
}

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_SUMMARY_FIELD = re.compile(r'"?summary"?\s*[:=]\s*"([^"]{10,})"', re.IGNORECASE)
_IMPORTANCE_FIELD = re.compile(r'"?importance"?\s*[:=]\s*\+?(\d+(?:\.\d+)?)', re.IGNORECASE)
_DELTA_FIELD = re.compile(r'"?relationship_?delta"?\s*[:=]\s*([+-]?\d*\.?\d+)', re.IGNORECASE)
_QUOTED = re.compile(r'"([^"]+)"')


def _field_array(text: str, key: str) -> Optional[List[str]]:
    match = re.search(rf'"?{key}"?\s*[:=]\s*\[([^\]]*)\]', text, re.IGNORECASE)
    if not match:
        return None
    return [item.strip() for item in _QUOTED.findall(match.group(1)) if item.strip()]


def _count_keywords(text: str, keywords: List[str]) -> int:
    lowered = text.lower()
    return sum(1 for keyword in keywords if keyword in lowered)


def extract_summary_sentence(text: str) -> Optional[str]:
    """
    Find a usable summary in raw text.

    An explicit ``"summary": "..."`` fragment wins; otherwise the first
    sentence longer than 20 characters. Returns None if neither exists.
    """
    if not text:
        return None

    match = _SUMMARY_FIELD.search(text)
    if match:
        return match.group(1).strip()[:MAX_SUMMARY_LENGTH]

    plain = re.sub(r"[{}\[\]\"]", " ", text)
    for sentence in _SENTENCE_SPLIT.split(plain):
        sentence = " ".join(sentence.split())
        if len(sentence) > MIN_SUMMARY_LENGTH:
            return sentence[:MAX_SUMMARY_LENGTH]
    return None


def infer_importance(text: str) -> int:
    """Importance on the 1-10 scale from an explicit field or keywords."""
    match = _IMPORTANCE_FIELD.search(text)
    if match:
        return max(1, min(10, round(float(match.group(1)))))

    if _count_keywords(text, HIGH_IMPORTANCE_KEYWORDS):
        return 7
    if _count_keywords(text, LOW_IMPORTANCE_KEYWORDS):
        return 3
    return DEFAULT_IMPORTANCE


def infer_sentiment(text: str) -> float:
    """
    Relationship delta from an explicit field or keyword balance.

    Keyword-derived deltas move 0.1 per net keyword, capped at +/-0.3.
    """
    match = _DELTA_FIELD.search(text)
    if match:
        return max(-1.0, min(1.0, float(match.group(1))))

    balance = _count_keywords(text, POSITIVE_KEYWORDS) - _count_keywords(text, NEGATIVE_KEYWORDS)
    delta = max(-MAX_HEURISTIC_DELTA, min(MAX_HEURISTIC_DELTA, balance * 0.1))
    return round(delta, 2)


def infer_emotions(text: str) -> Emotions:
    """Emotion weights from keyword counts; all neutral when none match."""
    positive = _count_keywords(text, POSITIVE_KEYWORDS)
    negative = _count_keywords(text, NEGATIVE_KEYWORDS)
    total = positive + negative + 1
    return Emotions(
        positive=round(positive / total, 2),
        negative=round(negative / total, 2),
        neutral=round(1 / total, 2),
    )


def extract_decisions(text: str) -> List[str]:
    """Decisions from an explicit array or sentences with decision verbs (max 3)."""
    explicit = _field_array(text, "decisions")
    if explicit is not None:
        return explicit

    decisions = []
    for sentence in _SENTENCE_SPLIT.split(text):
        sentence = " ".join(sentence.split())
        if sentence and _count_keywords(sentence, DECISION_KEYWORDS):
            decisions.append(sentence[:MAX_SUMMARY_LENGTH])
        if len(decisions) == 3:
            break
    return decisions


def extract_topics(text: str) -> List[str]:
    """Topics from an explicit array or the keyword categories that match."""
    explicit = _field_array(text, "topics")
    if explicit is not None:
        return explicit
    return [topic for topic, keywords in TOPIC_KEYWORDS.items() if _count_keywords(text, keywords)]


def heuristic_analysis(text: str, character: str, user_name: str) -> Optional[JournalAnalysis]:
    """
    Build a best-effort analysis from raw text.

    Returns:
        A heuristic JournalAnalysis, or None if the text has no sentence
        long enough to serve as a summary
    """
    summary = extract_summary_sentence(text)
    if summary is None:
        logger.warning("Heuristic analysis found no usable summary sentence")
        return None

    analysis = JournalAnalysis(
        summary=summary,
        emotions=infer_emotions(text),
        decisions=extract_decisions(text),
        topics=extract_topics(text),
        importance=infer_importance(text),
        relationship_delta=infer_sentiment(text),
        participants=[character, user_name],
        source="heuristic",
    )
    logger.info(
        f"Heuristic analysis for {character}: importance={analysis.importance}, "
        f"delta={analysis.relationship_delta}"
    )
    return analysis
