"""
SQLAlchemy-based vector storage implementation.

The SQL table is the authoritative store: every record lives there with its
metadata blob and float32 embedding. An optional QdrantVectorIndex mirrors
the vectors for accelerated KNN. Index writes happen only after the store
commit and their failures are logged, never raised, so the store stays
queryable through the brute-force path whenever the index is missing,
broken, or out of sync.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import List, Optional

import numpy as np
from sqlalchemy import Column, DateTime, Engine, Float, Index, Integer, LargeBinary, String, Text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base

from persona_journal.exceptions import VectorStoreError
from persona_journal.models import MemoryRecord, QueryHit
from persona_journal.storage.vector.qdrant import QdrantVectorIndex
from persona_journal.storage.vector.similarity import rank_by_cosine_distance

logger = logging.getLogger(__name__)

Base = declarative_base()


def encode_embedding(embedding: List[float]) -> bytes:
    return np.asarray(embedding, dtype=np.float32).tobytes()


def decode_embedding(blob: bytes) -> List[float]:
    return np.frombuffer(blob, dtype=np.float32).tolist()


class MemoryDB(Base):
    """SQLAlchemy model for memory storage."""

    __tablename__ = "memories"

    rowid = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, nullable=False, unique=True)
    owner = Column(String, nullable=False, index=True)
    kind = Column(String, nullable=False)
    summary = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime, nullable=False, default=datetime.now)
    importance = Column(Float, nullable=False)
    dimension = Column(Integer, nullable=False)

    # Full metadata JSON (every persisted field except the embedding)
    data = Column(Text, nullable=False)
    embedding = Column(LargeBinary, nullable=False)

    __table_args__ = (Index("idx_memories_owner_dimension", "owner", "dimension"),)

    def to_memory_record(self) -> MemoryRecord:
        return MemoryRecord.from_metadata(self.data, decode_embedding(self.embedding))

    @staticmethod
    def from_memory_record(record: MemoryRecord, embedding: List[float]) -> "MemoryDB":
        return MemoryDB(
            id=record.id,
            owner=record.owner,
            kind=record.kind,
            summary=record.summary,
            timestamp=record.timestamp,
            importance=record.importance,
            dimension=len(embedding),
            data=record.metadata_json(),
            embedding=encode_embedding(embedding),
        )


class SQLAlchemyVectorStore:
    """
    Durable VectorStore with an optional accelerated index.

    Example:
        from qdrant_client import QdrantClient
        from sqlalchemy import create_engine

        engine = create_engine("sqlite:///memories.db")
        index = QdrantVectorIndex(QdrantClient(path="memories.qdrant"))
        store = SQLAlchemyVectorStore(engine, index=index)
        store.ensure_ready()
    """

    def __init__(self, engine: Engine, index: Optional[QdrantVectorIndex] = None):
        """
        Initialize the SQLAlchemy vector store.

        Args:
            engine: SQLAlchemy engine for database connection
            index: Optional accelerated KNN index
        """
        self.engine = engine
        self.index = index
        self._ready = False
        self._index_ready = False
        self._ready_lock = threading.Lock()
        logger.info(
            f"SQLAlchemyVectorStore initialized (engine={engine.url}, "
            f"index={'qdrant' if index else 'none'})"
        )

    @contextmanager
    def _session(self):
        """Context manager for database sessions with automatic commit/rollback."""
        session = Session(self.engine)
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error: {e}")
            raise VectorStoreError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @property
    def index_active(self) -> bool:
        """Whether the accelerated index initialized successfully."""
        return self.index is not None and self._index_ready

    def ensure_ready(self) -> None:
        """Create tables and probe the index. Idempotent and thread-safe."""
        if self._ready:
            return

        with self._ready_lock:
            if self._ready:
                return

            try:
                Base.metadata.create_all(self.engine)
            except SQLAlchemyError as e:
                raise VectorStoreError(f"Failed to create memory tables: {e}") from e

            if self.index is not None:
                try:
                    self.index.ensure_ready()
                    self._index_ready = True
                except Exception as e:
                    logger.warning(f"Vector index unavailable, using brute-force search: {e}")

            self._ready = True
            logger.info("Memory tables created/verified")

    def insert(self, embedding: List[float], record: MemoryRecord) -> str:
        """Store a record, then mirror it into the index (best effort)."""
        if not embedding:
            raise ValueError("Cannot store a memory without an embedding")

        self.ensure_ready()

        with self._session() as session:
            session.add(MemoryDB.from_memory_record(record, embedding))

        logger.debug(
            f"Inserted memory {record.id} ({record.kind}, owner={record.owner}): "
            f"'{record.summary[:50]}...'"
        )

        if self.index_active:
            try:
                self.index.add(record.id, list(embedding), record.owner)
            except Exception as e:
                logger.warning(f"Failed to index memory {record.id}, store write kept: {e}")

        return record.id

    def _index_in_sync(self, dimension: int, owner: Optional[str]) -> bool:
        """The index is only trusted when it holds every stored vector in scope."""
        with self._session() as session:
            query = session.query(MemoryDB).filter(MemoryDB.dimension == dimension)
            if owner is not None:
                query = query.filter(MemoryDB.owner == owner)
            stored = query.count()

        if stored == 0:
            return False
        indexed = self.index.count(dimension, owner)
        if indexed != stored:
            logger.debug(
                f"Vector index out of sync for dimension {dimension} "
                f"(indexed={indexed}, stored={stored})"
            )
            return False
        return True

    def query(
        self, query_vector: List[float], k: int, owner: Optional[str] = None
    ) -> List[QueryHit]:
        """Nearest records by cosine distance, via the index when possible."""
        self.ensure_ready()
        if not query_vector or k <= 0:
            return []

        if self.index_active:
            try:
                if self._index_in_sync(len(query_vector), owner):
                    return self._query_index(query_vector, k, owner)
            except VectorStoreError:
                raise
            except Exception as e:
                logger.warning(f"Vector index query failed, falling back to brute force: {e}")

        return self._query_brute_force(query_vector, k, owner)

    def _query_index(self, query_vector: List[float], k: int, owner: Optional[str]) -> List[QueryHit]:
        matches = self.index.search(query_vector, k, owner)
        if not matches:
            return []

        ids = [record_id for record_id, _ in matches]
        with self._session() as session:
            rows = session.query(MemoryDB).filter(MemoryDB.id.in_(ids)).all()
            records = {row.id: row.to_memory_record() for row in rows}

        hits = []
        for record_id, distance in matches:
            record = records.get(record_id)
            if record is None:
                logger.warning(f"Indexed memory {record_id} missing from store, skipping")
                continue
            if len(record.embedding) != len(query_vector):
                continue
            hits.append(QueryHit(record=record, score=distance))

        logger.debug(f"{len(hits)} results found via index (k={k})")
        return hits

    def _query_brute_force(
        self, query_vector: List[float], k: int, owner: Optional[str]
    ) -> List[QueryHit]:
        with self._session() as session:
            query = session.query(MemoryDB).filter(MemoryDB.dimension == len(query_vector))
            if owner is not None:
                query = query.filter(MemoryDB.owner == owner)
            records = [row.to_memory_record() for row in query.order_by(MemoryDB.rowid).all()]

        ranked = rank_by_cosine_distance(
            query_vector, [(record, record.embedding) for record in records], k
        )

        logger.debug(f"{len(ranked)} results found via brute force (k={k})")
        return [QueryHit(record=record, score=distance) for record, distance in ranked]

    def delete_by_owner(self, owner: str) -> int:
        """Delete an owner's records, then their index entries (best effort)."""
        self.ensure_ready()

        with self._session() as session:
            count = session.query(MemoryDB).filter(MemoryDB.owner == owner).delete()

        if count and self.index_active:
            try:
                self.index.delete_owner(owner)
            except Exception as e:
                logger.warning(f"Failed to remove indexed vectors for owner={owner}: {e}")

        logger.info(f"Cleared {count} memories for owner={owner}")
        return count

    def count(self, owner: Optional[str] = None) -> int:
        self.ensure_ready()
        with self._session() as session:
            query = session.query(MemoryDB)
            if owner is not None:
                query = query.filter(MemoryDB.owner == owner)
            return query.count()

    def list_records(self, owner: str) -> List[MemoryRecord]:
        self.ensure_ready()
        with self._session() as session:
            rows = (
                session.query(MemoryDB)
                .filter(MemoryDB.owner == owner)
                .order_by(MemoryDB.timestamp.desc(), MemoryDB.rowid.desc())
                .all()
            )
            return [row.to_memory_record() for row in rows]
