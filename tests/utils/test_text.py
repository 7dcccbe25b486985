"""Tests for text helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from persona_journal.utils.text import replace_user_placeholder, time_ago

NOW = datetime(2025, 6, 15, 18, 30)


class TestReplaceUserPlaceholder:
    def test_any_case(self):
        text = "{{user}} met {{User}} and {{USER}}."
        assert replace_user_placeholder(text, "Sam") == "Sam met Sam and Sam."

    def test_defaults_to_user(self):
        assert replace_user_placeholder("Hi {{user}}", None) == "Hi User"
        assert replace_user_placeholder("Hi {{user}}", "") == "Hi User"

    def test_name_with_backslash_is_literal(self):
        assert replace_user_placeholder("Hi {{user}}", r"C:\new") == r"Hi C:\new"

    def test_empty_text(self):
        assert replace_user_placeholder("", "Sam") == ""


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(hours=3), "Earlier today"),
        (timedelta(days=1, hours=2), "Yesterday"),
        (timedelta(days=3), "3 days ago"),
        (timedelta(days=6), "6 days ago"),
        (timedelta(days=7), "1 weeks ago"),
        (timedelta(days=14), "2 weeks ago"),
        (timedelta(days=29), "4 weeks ago"),
        (timedelta(days=30), "1 months ago"),
        (timedelta(days=65), "2 months ago"),
    ],
)
def test_time_ago(delta, expected):
    assert time_ago(NOW - delta, NOW) == expected


def test_time_ago_future_timestamp():
    assert time_ago(NOW + timedelta(days=2), NOW) == "Earlier today"


def test_time_ago_aware_timestamp():
    stamp = datetime.now(timezone.utc) - timedelta(days=2)
    assert time_ago(stamp) == "2 days ago"
