"""
In-memory vector storage implementation.

Provides a simple in-memory store with brute-force cosine search, suitable
for testing and development. For durable storage, use the SQLAlchemy store.
"""

import logging
from typing import Dict, List, Optional

from persona_journal.models import MemoryRecord, QueryHit
from persona_journal.storage.vector.similarity import rank_by_cosine_distance

logger = logging.getLogger(__name__)


class InMemoryVectorStore:
    """
    In-memory implementation of the VectorStore protocol.

    Records are kept in insertion order. Data is lost on restart.
    """

    def __init__(self):
        self._records: Dict[str, MemoryRecord] = {}

        logger.info("InMemoryVectorStore initialized")

    def ensure_ready(self) -> None:
        """Nothing to initialize."""

    def insert(self, embedding: List[float], record: MemoryRecord) -> str:
        """Add a record to the store."""
        if not embedding:
            raise ValueError("Cannot store a memory without an embedding")

        self._records[record.id] = record.model_copy(update={"embedding": list(embedding)})

        logger.debug(f"Inserted memory {record.id}: '{record.summary[:50]}...'")
        return record.id

    def query(
        self, query_vector: List[float], k: int, owner: Optional[str] = None
    ) -> List[QueryHit]:
        """Brute-force search by cosine distance."""
        candidates = [
            (record, record.embedding)
            for record in self._records.values()
            if owner is None or record.owner == owner
        ]

        ranked = rank_by_cosine_distance(query_vector, candidates, k)

        logger.debug(f"{len(ranked)} results found (k={k}, owner={owner})")

        return [QueryHit(record=record, score=score) for record, score in ranked]

    def delete_by_owner(self, owner: str) -> int:
        """Clear all memories for a specific owner."""
        ids_to_delete = [
            record_id for record_id, record in self._records.items() if record.owner == owner
        ]

        for record_id in ids_to_delete:
            del self._records[record_id]

        logger.info(f"Cleared {len(ids_to_delete)} memories for owner={owner}")

        return len(ids_to_delete)

    def count(self, owner: Optional[str] = None) -> int:
        if owner is None:
            return len(self._records)
        return sum(1 for record in self._records.values() if record.owner == owner)

    def list_records(self, owner: str) -> List[MemoryRecord]:
        records = [record for record in self._records.values() if record.owner == owner]
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    def clear(self):
        """Clear ALL memories from the store."""
        count = len(self._records)
        self._records.clear()
        logger.info(f"Cleared all memories ({count} total)")
