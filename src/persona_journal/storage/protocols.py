"""
Storage protocol definitions for long-term memory.

The protocol is implementation-agnostic: the SQLAlchemy store (with an
optional Qdrant index) and the in-memory store both satisfy it.
"""

from typing import List, Optional, Protocol

from persona_journal.models import MemoryRecord, QueryHit


class VectorStore(Protocol):
    """
    Protocol for durable (embedding, metadata) storage.

    Implementations must compare a query vector only against stored vectors
    of the same length, and report scores as cosine distance (smaller is
    closer). Scores are comparable in order only, not bit-for-bit, across
    implementations.
    """

    def ensure_ready(self) -> None:
        """
        Idempotent initialization. Safe to call many times; every other
        operation calls it implicitly.
        """
        ...

    def insert(self, embedding: List[float], record: MemoryRecord) -> str:
        """
        Append a record.

        Args:
            embedding: Non-empty embedding vector for the record
            record: The memory record (its own embedding field is ignored)

        Returns:
            The record id

        Raises:
            ValueError: If the embedding is empty
        """
        ...

    def query(
        self, query_vector: List[float], k: int, owner: Optional[str] = None
    ) -> List[QueryHit]:
        """
        Return up to k nearest records, best first.

        Args:
            query_vector: The query embedding
            k: Maximum number of results
            owner: Optional owner hint; callers must still filter by owner

        Returns:
            Hits ordered by ascending cosine distance
        """
        ...

    def delete_by_owner(self, owner: str) -> int:
        """
        Remove every record belonging to owner.

        Returns:
            Number of records removed (0 for an unknown owner)
        """
        ...

    def count(self, owner: Optional[str] = None) -> int:
        """Number of stored records, optionally for one owner."""
        ...

    def list_records(self, owner: str) -> List[MemoryRecord]:
        """All records of an owner, newest first."""
        ...
