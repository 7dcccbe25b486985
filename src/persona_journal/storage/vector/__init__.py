"""Vector storage implementations."""

from persona_journal.storage.vector.memory import InMemoryVectorStore
from persona_journal.storage.vector.qdrant import QdrantVectorIndex
from persona_journal.storage.vector.similarity import cosine_distance, rank_by_cosine_distance
from persona_journal.storage.vector.sqlalchemy import SQLAlchemyVectorStore

__all__ = [
    "InMemoryVectorStore",
    "QdrantVectorIndex",
    "SQLAlchemyVectorStore",
    "cosine_distance",
    "rank_by_cosine_distance",
]
