"""Token estimation for prompt budgeting."""

import logging
import math
from typing import Optional

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "r50k_base"
CHARS_PER_TOKEN = 4


def heuristic_token_count(text: str) -> int:
    """Roughly four characters per token."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TokenEstimator:
    """
    Counts tokens with a tiktoken encoding, or ``ceil(len / 4)`` when the
    encoding cannot be loaded or fails on some input.

    Pass ``encoding_name=None`` to always use the heuristic.
    """

    def __init__(self, encoding_name: Optional[str] = DEFAULT_ENCODING):
        self.encoding_name = encoding_name
        self._encoding = None
        self._load_failed = encoding_name is None

    def _get_encoding(self):
        if self._encoding is None and not self._load_failed:
            try:
                self._encoding = tiktoken.get_encoding(self.encoding_name)
            except Exception as e:
                logger.warning(
                    f"Tokenizer {self.encoding_name} unavailable, using length/4 estimate: {e}"
                )
                self._load_failed = True
        return self._encoding

    @property
    def uses_tokenizer(self) -> bool:
        return self._get_encoding() is not None

    def estimate(self, text: Optional[str]) -> int:
        if not text:
            return 0

        encoding = self._get_encoding()
        if encoding is None:
            return heuristic_token_count(text)

        try:
            return len(encoding.encode(text, disallowed_special=()))
        except Exception as e:
            logger.warning(f"Tokenizer error, using length/4 estimate: {e}")
            return heuristic_token_count(text)
