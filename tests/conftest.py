"""Shared fixtures: deterministic embedders, mock LLMs and settings."""

from typing import Callable, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from persona_journal.config import MemorySettings
from persona_journal.embeddings.gateway import EmbeddingGateway
from persona_journal.exceptions import ProviderError
from persona_journal.storage.vector.memory import InMemoryVectorStore

LETTERS = "abcdefgh"


def letter_vector(text: str) -> List[float]:
    """Deterministic 8-dim embedding: counts of a-h plus one (never zero)."""
    lowered = text.lower()
    return [float(lowered.count(letter)) + 1.0 for letter in LETTERS]


class FakeEmbedding:
    """TextEmbedding double that records calls and can be made to fail."""

    def __init__(
        self,
        name: str,
        embed_fn: Optional[Callable[[str], List[float]]] = None,
        fail: bool = False,
        empty: bool = False,
    ):
        self._name = name
        self.embed_fn = embed_fn or letter_vector
        self.fail = fail
        self.empty = empty
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def model_name(self) -> str:
        return f"{self._name}-test-model"

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail:
            raise ProviderError(self._name, "simulated outage")
        if self.empty:
            return []
        return self.embed_fn(text)


class MockLLMProvider:
    """Mock LLM provider returning canned content."""

    def __init__(self, response_content: str = ""):
        self.response_content = response_content
        self.chat = AsyncMock(return_value=Mock(content=response_content))


@pytest.fixture
def settings():
    """Settings with no pacing delay and a small journal frequency."""
    return MemorySettings(
        journal_frequency=2,
        recycle_delay_seconds=0,
        embedding_provider="nvidia",
        query_method="plain",
        enable_reranking=False,
        api_keys={},
    )


@pytest.fixture
def embedder():
    return FakeEmbedding("nvidia")


@pytest.fixture
def gateway(embedder):
    providers: Dict[str, FakeEmbedding] = {"nvidia": embedder}
    return EmbeddingGateway(providers)


@pytest.fixture
def failing_gateway():
    return EmbeddingGateway(
        {name: FakeEmbedding(name, fail=True) for name in ("gemini", "nvidia", "mistral", "cohere")}
    )


@pytest.fixture
def memory_store():
    return InMemoryVectorStore()


@pytest.fixture
def make_embedding():
    """Factory for FakeEmbedding providers."""
    return FakeEmbedding


@pytest.fixture
def make_llm():
    """Factory for MockLLMProvider instances."""
    return MockLLMProvider


@pytest.fixture
def vectorize():
    """The deterministic embedding function used by FakeEmbedding."""
    return letter_vector
