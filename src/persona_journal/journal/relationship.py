"""Relationship sentiment updates produced as a side effect of journaling."""

from persona_journal.models import RelationshipState, RelationshipStatus


def clamp_sentiment(value: float) -> float:
    return max(-1.0, min(1.0, value))


def status_for_sentiment(sentiment: float) -> RelationshipStatus:
    """
    Map a sentiment to its status. Thresholds are strict, so 0.4 is
    still an acquaintance and -0.1 is still neutral.
    """
    if sentiment > 0.4:
        return "friendly"
    if sentiment > 0.1:
        return "acquaintance"
    if sentiment < -0.4:
        return "hostile"
    if sentiment < -0.1:
        return "wary"
    return "neutral"


def update_relationship(current_sentiment: float, delta: float) -> RelationshipState:
    """Apply one journal entry's delta; sentiment is kept to two decimals."""
    sentiment = round(clamp_sentiment(current_sentiment + delta), 2)
    return RelationshipState(sentiment=sentiment, status=status_for_sentiment(sentiment))
