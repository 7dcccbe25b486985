"""
JSON extraction and repair for journal analysis responses.

Generators wrap their JSON in reasoning blocks, code fences and commentary,
and often emit JSON that is almost valid. Each repair rule below is a pure
``str -> str`` transform so it can be tested on its own; REPAIR_STEPS runs
them in a fixed order.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("summary", "emotions", "decisions", "topics", "importance", "relationshipDelta")

_REASONING_BLOCK = re.compile(
    r"<(think|thinking|reasoning|reflection)>.*?</\1>", re.DOTALL | re.IGNORECASE
)
# An unterminated reasoning block: everything up to the closing tag is dropped
_REASONING_PREFIX = re.compile(
    r"^.*?</(think|thinking|reasoning|reflection)>", re.DOTALL | re.IGNORECASE
)
_CODE_FENCE = re.compile(r"```[a-zA-Z]*")

_INVISIBLE_PREFIX = "\ufeff\u200b\u200c\u200d\u2060"
_SIGNED_NUMBER = re.compile(r"([:\[,]\s*)\+(?=\.?\d)")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_DUPLICATE_COMMAS = re.compile(r",(\s*,)+")
_CONTROL_WHITESPACE = re.compile(r"[\r\n\t]+")
_JSON_LITERALS = {"true", "false", "null"}


def clean_response(text: str) -> str:
    """Remove reasoning blocks and code-fence markers around a response."""
    if not text:
        return ""
    cleaned = _REASONING_BLOCK.sub("", text)
    cleaned = _REASONING_PREFIX.sub("", cleaned)
    cleaned = _CODE_FENCE.sub("", cleaned)
    return cleaned.strip()


def find_json_candidates(text: str) -> List[str]:
    """
    Find every top-level balanced ``{...}`` span in text.

    Braces inside string literals are ignored. Unbalanced spans are not
    returned.
    """
    candidates = []
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for position, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = position
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                candidates.append(text[start : position + 1])

    return candidates


def _required_key_count(candidate: str) -> int:
    return sum(1 for key in REQUIRED_KEYS if f'"{key}"' in candidate)


def select_json_candidate(text: str, candidates: Optional[List[str]] = None) -> Optional[str]:
    """
    Pick the span most likely to be the analysis object.

    Prefers the candidate containing the most required keys, then the
    longest. Without candidates, falls back to the first ``{`` through the
    last ``}``.
    """
    if candidates is None:
        candidates = find_json_candidates(text)

    if candidates:
        return max(candidates, key=lambda c: (_required_key_count(c), len(c)))

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        return text[first : last + 1]
    return None


def strip_invisible_prefix(text: str) -> str:
    """Drop a leading BOM or zero-width characters."""
    return text.lstrip(_INVISIBLE_PREFIX)


def unsign_positive_numbers(text: str) -> str:
    """``"relationshipDelta": +0.3`` -> ``"relationshipDelta": 0.3``."""
    return _SIGNED_NUMBER.sub(r"\1", text)


def collapse_duplicate_commas(text: str) -> str:
    """``["a",, "b"]`` -> ``["a", "b"]``."""
    return _DUPLICATE_COMMAS.sub(",", text)


def remove_trailing_commas(text: str) -> str:
    """``["a", "b",]`` -> ``["a", "b"]``."""
    return _TRAILING_COMMA.sub(r"\1", text)


def quote_bare_array_tokens(text: str) -> str:
    """
    Quote unquoted words inside arrays: ``[tavern, ale]`` -> ``["tavern", "ale"]``.

    Numbers and the literals true/false/null are left alone, as is anything
    inside a string or directly inside an object.
    """
    out = []
    stack = []
    in_string = False
    escaped = False
    expecting_value = False
    position = 0

    while position < len(text):
        char = text[position]

        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            position += 1
            continue

        if expecting_value and stack and stack[-1] == "[" and (char.isalpha() or char == "_"):
            end = position
            while end < len(text) and text[end] not in ",]":
                end += 1
            token = text[position:end].rstrip()
            trailing = text[position + len(token) : end]
            if token in _JSON_LITERALS:
                out.append(token)
            else:
                out.append(json.dumps(token))
            out.append(trailing)
            expecting_value = False
            position = end
            continue

        if char == '"':
            in_string = True
            expecting_value = False
        elif char in "[{":
            stack.append(char)
            expecting_value = char == "["
        elif char in "]}":
            if stack:
                stack.pop()
            expecting_value = False
        elif char == ",":
            expecting_value = bool(stack) and stack[-1] == "["
        elif not char.isspace():
            expecting_value = False

        out.append(char)
        position += 1

    return "".join(out)


def strip_control_whitespace(text: str) -> str:
    """Replace raw newlines and tabs (invalid inside JSON strings) with a space."""
    return _CONTROL_WHITESPACE.sub(" ", text)


REPAIR_STEPS = (
    strip_invisible_prefix,
    unsign_positive_numbers,
    collapse_duplicate_commas,
    remove_trailing_commas,
    quote_bare_array_tokens,
    strip_control_whitespace,
)


def repair_json(text: str) -> str:
    """Apply every repair step in order."""
    for step in REPAIR_STEPS:
        text = step(text)
    return text


def parse_analysis_json(raw: str) -> Optional[Dict[str, Any]]:
    """
    Extract and parse the analysis object from a raw generator response.

    Returns:
        The decoded object, or None if no parsable JSON object was found
    """
    cleaned = clean_response(raw)
    candidate = select_json_candidate(cleaned)
    if candidate is None:
        logger.warning("Analysis response did not contain a JSON object")
        return None

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        repaired = repair_json(candidate)
        try:
            data = json.loads(repaired)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse analysis JSON after repair: {e}")
            logger.debug(f"Unparsable analysis JSON: {repaired[:500]}")
            return None
        logger.debug("Analysis JSON parsed after repair")

    if not isinstance(data, dict):
        logger.warning(f"Analysis JSON is a {type(data).__name__}, expected an object")
        return None
    return data
