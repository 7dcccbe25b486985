"""Tests for the JSON extraction and repair rules, one rule at a time."""

import json

import pytest

from persona_journal.journal.json_repair import (
    REPAIR_STEPS,
    clean_response,
    collapse_duplicate_commas,
    find_json_candidates,
    parse_analysis_json,
    quote_bare_array_tokens,
    remove_trailing_commas,
    repair_json,
    select_json_candidate,
    strip_control_whitespace,
    strip_invisible_prefix,
    unsign_positive_numbers,
)

TAVERN = (
    '{"summary":"Met at the tavern.","emotions":{"positive":0.6,"negative":0.1,"neutral":0.3},'
    '"decisions":[],"topics":["tavern"],"importance":4,"relationshipDelta":0.2}'
)


class TestCleanResponse:
    def test_removes_think_block(self):
        assert clean_response("<think>planning</think>{\"a\": 1}") == '{"a": 1}'

    def test_removes_unterminated_reasoning_prefix(self):
        assert clean_response("reasoning here</thinking>\n{}") == "{}"

    def test_removes_code_fences(self):
        assert clean_response('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_empty(self):
        assert clean_response("") == ""


class TestCandidates:
    def test_finds_top_level_objects(self):
        text = 'Here: {"a": {"b": 1}} and also {"c": 2}'
        assert find_json_candidates(text) == ['{"a": {"b": 1}}', '{"c": 2}']

    def test_ignores_braces_in_strings(self):
        text = '{"summary": "a } inside"}'
        assert find_json_candidates(text) == [text]

    def test_unbalanced_is_not_a_candidate(self):
        assert find_json_candidates('{"a": 1') == []

    def test_prefers_most_required_keys(self):
        small = '{"summary": "x", "importance": 3}'
        example = '{"note": "this example object is much longer than the real one"}'
        assert select_json_candidate("", [example, small]) == small

    def test_tie_broken_by_length(self):
        short = '{"summary": "a"}'
        longer = '{"summary": "a longer one"}'
        assert select_json_candidate("", [short, longer]) == longer

    def test_falls_back_to_widest_span(self):
        text = 'junk {"summary": "x", "topics": [1 } trailing }'
        assert select_json_candidate("x {\"a\": 1", []) is None
        assert select_json_candidate(text, []) == '{"summary": "x", "topics": [1 } trailing }'


class TestRepairRules:
    def test_strip_invisible_prefix(self):
        assert strip_invisible_prefix('\ufeff\u200b{"a": 1}') == '{"a": 1}'

    def test_unsign_positive_numbers(self):
        assert unsign_positive_numbers('{"d": +0.3, "l": [+1, -2]}') == '{"d": 0.3, "l": [1, -2]}'

    def test_unsign_leaves_strings_with_plus_words(self):
        assert unsign_positive_numbers('{"s": "C++ rocks"}') == '{"s": "C++ rocks"}'

    def test_collapse_duplicate_commas(self):
        assert collapse_duplicate_commas('["a",, "b", , "c"]') == '["a", "b", "c"]'

    def test_remove_trailing_commas(self):
        assert remove_trailing_commas('{"a": ["x", "y",], "b": 1,}') == '{"a": ["x", "y"], "b": 1}'

    def test_quote_bare_array_tokens(self):
        assert quote_bare_array_tokens('{"topics": [tavern, old friends]}') == (
            '{"topics": ["tavern", "old friends"]}'
        )

    def test_quote_leaves_literals_numbers_and_strings(self):
        text = '{"a": [true, null, 3, "x, y"], "b": false}'
        assert quote_bare_array_tokens(text) == text

    def test_strip_control_whitespace(self):
        assert strip_control_whitespace('{"summary": "line one\nline\ttwo"}') == (
            '{"summary": "line one line two"}'
        )

    def test_steps_are_ordered(self):
        assert REPAIR_STEPS[0] is strip_invisible_prefix
        assert collapse_duplicate_commas in REPAIR_STEPS
        assert REPAIR_STEPS.index(collapse_duplicate_commas) < REPAIR_STEPS.index(
            remove_trailing_commas
        )

    def test_repair_json_combined(self):
        broken = '{"topics": [tavern,, ale,], "relationshipDelta": +0.2,\n"summary": "ok"}'
        assert json.loads(repair_json(broken)) == {
            "topics": ["tavern", "ale"],
            "relationshipDelta": 0.2,
            "summary": "ok",
        }


class TestParseAnalysisJson:
    def test_clean_json(self):
        assert parse_analysis_json(TAVERN)["importance"] == 4

    def test_wrapped_in_reasoning_and_fences(self):
        raw = f"<think>let me see</think>\nSure!\n```json\n{TAVERN}\n```\nHope that helps."
        assert parse_analysis_json(raw)["summary"] == "Met at the tavern."

    def test_needs_repair(self):
        raw = TAVERN.replace('"relationshipDelta":0.2', '"relationshipDelta":+0.2,')
        assert parse_analysis_json(raw)["relationshipDelta"] == 0.2

    def test_no_json(self):
        assert parse_analysis_json("I could not analyze this conversation.") is None

    def test_unrepairable(self):
        assert parse_analysis_json('{"summary": "x" "importance": }') is None

    @pytest.mark.parametrize("raw", ["[1, 2]", ""])
    def test_not_an_object(self, raw):
        assert parse_analysis_json(raw) is None
