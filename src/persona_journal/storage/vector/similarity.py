"""Brute-force cosine distance shared by every store's fallback path."""

import logging
from typing import List, Sequence, Tuple, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cosine_distance(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Cosine distance ``1 - cos(theta)`` between two equal-length vectors.

    A zero-magnitude vector is treated as having similarity 0 (distance 1.0).
    """
    if len(vec1) != len(vec2):
        raise ValueError("Vectors must have the same length")

    a = np.asarray(vec1, dtype=np.float64)
    b = np.asarray(vec2, dtype=np.float64)
    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 1.0
    return float(1.0 - np.dot(a, b) / denom)


def rank_by_cosine_distance(
    query_vector: Sequence[float], candidates: Sequence[Tuple[T, Sequence[float]]], k: int
) -> List[Tuple[T, float]]:
    """
    Score candidates against a query vector and keep the k closest.

    Candidates whose vector length differs from the query are skipped, never
    padded or truncated.

    Args:
        query_vector: The query embedding
        candidates: (item, vector) pairs
        k: Maximum number of results

    Returns:
        (item, distance) pairs sorted by ascending distance
    """
    if k <= 0 or not query_vector:
        return []

    dimension = len(query_vector)
    matching = [(item, vector) for item, vector in candidates if len(vector) == dimension]
    skipped = len(candidates) - len(matching)
    if skipped:
        logger.debug(f"Skipped {skipped} stored vectors with dimension != {dimension}")
    if not matching:
        return []

    query = np.asarray(query_vector, dtype=np.float64)
    matrix = np.asarray([vector for _, vector in matching], dtype=np.float64)

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        similarities = np.where(norms > 0, dots / norms, 0.0)
    distances = 1.0 - similarities

    # Stable sort keeps insertion order among equal distances
    order = np.argsort(distances, kind="stable")[:k]
    return [(matching[i][0], float(distances[i])) for i in order]
