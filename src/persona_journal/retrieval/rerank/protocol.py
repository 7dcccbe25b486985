"""Reranker protocol and result type."""

from typing import List

from pydantic import BaseModel
from typing_extensions import Protocol, runtime_checkable


class RerankResult(BaseModel):
    """Relevance of one document, by its index in the request."""

    index: int
    score: float


@runtime_checkable
class Reranker(Protocol):
    """
    Protocol for relevance reranking backends.

    Implementations return results for some or all documents; indices refer
    to positions in the documents list passed in. Failures are raised as
    ProviderError so the RerankGateway can move on to the next provider.
    """

    @property
    def name(self) -> str:
        """Provider name used for fallback ordering and key lookup."""
        ...

    async def rerank(self, query: str, documents: List[str]) -> List[RerankResult]:
        """
        Score documents against a query.

        Args:
            query: The text the documents should be relevant to
            documents: Candidate texts

        Returns:
            One result per scored document, in any order
        """
        ...
