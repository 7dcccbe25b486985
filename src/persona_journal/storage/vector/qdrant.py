"""
Qdrant-backed accelerated KNN index.

The index mirrors (record id, vector, owner) for records held by the
authoritative store. It keeps one collection per embedding dimension, so a
query vector is only ever compared against vectors of its own length.
"""

import logging
from typing import List, Optional, Tuple

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PointStruct,
    VectorParams,
)

logger = logging.getLogger(__name__)


class QdrantVectorIndex:
    def __init__(self, client: QdrantClient, collection_prefix: str = "memories"):
        """
        Initialize the Qdrant index.

        Args:
            client: Qdrant client (server, on-disk local, or ":memory:" local mode)
            collection_prefix: Prefix for the per-dimension collections
        """
        self.client = client
        self.collection_prefix = collection_prefix

    def collection_name(self, dimension: int) -> str:
        return f"{self.collection_prefix}_{dimension}"

    def ensure_ready(self) -> None:
        """Verify the client is reachable. Raises if it is not."""
        self.client.get_collections()

    def _ensure_collection(self, dimension: int) -> str:
        name = self.collection_name(dimension)
        if not self.client.collection_exists(name):
            self.client.create_collection(
                collection_name=name,
                vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
            )
            logger.info(f"Created Qdrant collection {name}")
        return name

    def _owned_collections(self) -> List[str]:
        prefix = f"{self.collection_prefix}_"
        return [
            collection.name
            for collection in self.client.get_collections().collections
            if collection.name.startswith(prefix)
        ]

    @staticmethod
    def _owner_filter(owner: Optional[str]) -> Optional[Filter]:
        if owner is None:
            return None
        return Filter(must=[FieldCondition(key="owner", match=MatchValue(value=owner))])

    def add(self, record_id: str, vector: List[float], owner: str) -> None:
        """Mirror one record into the collection for its dimension."""
        name = self._ensure_collection(len(vector))
        self.client.upsert(
            collection_name=name,
            points=[PointStruct(id=record_id, vector=vector, payload={"owner": owner})],
        )
        logger.debug(f"Indexed memory {record_id} in {name}")

    def search(
        self, query_vector: List[float], k: int, owner: Optional[str] = None
    ) -> List[Tuple[str, float]]:
        """
        Approximate KNN search.

        Returns:
            (record id, cosine distance) pairs, closest first. Qdrant reports
            cosine similarity, converted here to ``1 - similarity``.
        """
        name = self.collection_name(len(query_vector))
        if not self.client.collection_exists(name):
            return []

        response = self.client.query_points(
            collection_name=name,
            query=query_vector,
            limit=k,
            query_filter=self._owner_filter(owner),
            with_payload=False,
        )

        logger.debug(f"{len(response.points)} hits found in {name}")
        return [(str(point.id), 1.0 - point.score) for point in response.points]

    def count(self, dimension: int, owner: Optional[str] = None) -> int:
        """Number of indexed vectors of a dimension, optionally for one owner."""
        name = self.collection_name(dimension)
        if not self.client.collection_exists(name):
            return 0
        result = self.client.count(
            collection_name=name, count_filter=self._owner_filter(owner), exact=True
        )
        return result.count

    def delete_owner(self, owner: str) -> None:
        """Remove every indexed vector of an owner, across all dimensions."""
        for name in self._owned_collections():
            self.client.delete(
                collection_name=name,
                points_selector=FilterSelector(filter=self._owner_filter(owner)),
            )
        logger.debug(f"Removed indexed vectors for owner={owner}")
