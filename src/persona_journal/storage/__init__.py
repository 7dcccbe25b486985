"""
Storage for long-term memory.

Provides the VectorStore protocol and its implementations: a durable
SQLAlchemy store with an optional Qdrant index, and an in-memory store.
"""

from persona_journal.storage.protocols import VectorStore
from persona_journal.storage.vector import (
    InMemoryVectorStore,
    QdrantVectorIndex,
    SQLAlchemyVectorStore,
)

__all__ = [
    "VectorStore",
    "InMemoryVectorStore",
    "QdrantVectorIndex",
    "SQLAlchemyVectorStore",
]
