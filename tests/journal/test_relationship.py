"""Tests for relationship sentiment updates and status thresholds."""

import pytest

from persona_journal.journal.relationship import (
    clamp_sentiment,
    status_for_sentiment,
    update_relationship,
)


@pytest.mark.parametrize(
    "sentiment, status",
    [
        (1.0, "friendly"),
        (0.41, "friendly"),
        (0.4, "acquaintance"),
        (0.11, "acquaintance"),
        (0.1, "neutral"),
        (0.0, "neutral"),
        (-0.1, "neutral"),
        (-0.11, "wary"),
        (-0.4, "wary"),
        (-0.41, "hostile"),
        (-1.0, "hostile"),
    ],
)
def test_status_thresholds(sentiment, status):
    assert status_for_sentiment(sentiment) == status


def test_clamp_sentiment():
    assert clamp_sentiment(1.7) == 1.0
    assert clamp_sentiment(-3.0) == -1.0
    assert clamp_sentiment(0.25) == 0.25


def test_update_from_neutral():
    state = update_relationship(0.0, 0.2)

    assert state.sentiment == 0.2
    assert state.status == "acquaintance"


def test_rounding_happens_before_threshold():
    # 0.1 + 0.3 is 0.4000000000000001 in floating point
    state = update_relationship(0.1, 0.3)

    assert state.sentiment == 0.4
    assert state.status == "acquaintance"


def test_repeated_deltas_stay_in_range():
    sentiment = 0.0
    for delta in [0.9, 0.8, -0.3, 1.0, -2.5, -0.7, 0.05]:
        state = update_relationship(sentiment, delta)
        assert -1.0 <= state.sentiment <= 1.0
        assert state.status == status_for_sentiment(state.sentiment)
        sentiment = state.sentiment

    assert sentiment == pytest.approx(-0.95)
