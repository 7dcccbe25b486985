"""Tests for the shared brute-force cosine ranking."""

import pytest

from persona_journal.storage.vector.similarity import cosine_distance, rank_by_cosine_distance


def test_cosine_distance_identical_and_orthogonal():
    assert cosine_distance([1.0, 0.0], [2.0, 0.0]) == pytest.approx(0.0)
    assert cosine_distance([1.0, 0.0], [0.0, 3.0]) == pytest.approx(1.0)
    assert cosine_distance([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(2.0)


def test_cosine_distance_zero_vector():
    assert cosine_distance([0.0, 0.0], [1.0, 0.0]) == 1.0


def test_cosine_distance_length_mismatch():
    with pytest.raises(ValueError):
        cosine_distance([1.0, 0.0], [1.0, 0.0, 0.0])


def test_rank_skips_mismatched_dimensions():
    candidates = [("two", [1.0, 0.0]), ("three", [1.0, 0.0, 0.0]), ("two-b", [0.0, 1.0])]

    ranked = rank_by_cosine_distance([1.0, 0.0], candidates, k=10)

    assert [item for item, _ in ranked] == ["two", "two-b"]


def test_rank_truncates_and_sorts():
    candidates = [("c", [0.0, 1.0]), ("a", [1.0, 0.0]), ("b", [1.0, 1.0])]

    ranked = rank_by_cosine_distance([1.0, 0.0], candidates, k=2)

    assert [item for item, _ in ranked] == ["a", "b"]
    assert ranked[0][1] <= ranked[1][1]


def test_rank_ties_keep_insertion_order():
    candidates = [("first", [1.0, 0.0]), ("second", [2.0, 0.0]), ("third", [3.0, 0.0])]

    ranked = rank_by_cosine_distance([1.0, 0.0], candidates, k=3)

    assert [item for item, _ in ranked] == ["first", "second", "third"]


def test_rank_empty_inputs():
    assert rank_by_cosine_distance([], [("a", [1.0])], k=5) == []
    assert rank_by_cosine_distance([1.0], [], k=5) == []
    assert rank_by_cosine_distance([1.0], [("a", [1.0])], k=0) == []
