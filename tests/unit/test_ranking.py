"""Unit tests for response normalization and ranking."""

from smartmem.memory.ranking import (
    ResponseShape,
    classify_response,
    extract_created_id,
    merge_and_rank,
    normalize_results,
    sort_by_recency,
)
from smartmem.memory.types import MemoryItem


def item(memory_id: str, score=None, **kwargs) -> MemoryItem:
    return MemoryItem(id=memory_id, memory=f"memory {memory_id}", score=score, **kwargs)


class TestClassifyResponse:
    """Tests for response shape classification."""

    def test_bare_list(self):
        normalized = classify_response([{"id": "a"}])
        assert normalized.shape is ResponseShape.BARE_LIST
        assert normalized.entries == [{"id": "a"}]

    def test_wrapped(self):
        normalized = classify_response({"results": [{"id": "a"}], "relations": []})
        assert normalized.shape is ResponseShape.WRAPPED
        assert normalized.entries == [{"id": "a"}]

    def test_wrapped_with_non_list_results(self):
        assert classify_response({"results": "oops"}).shape is ResponseShape.UNRECOGNIZED

    def test_unrecognized(self):
        for response in (None, "text", 42, {"memories": []}):
            normalized = classify_response(response)
            assert normalized.shape is ResponseShape.UNRECOGNIZED
            assert normalized.entries == []


class TestNormalizeResults:
    """Tests for normalize_results."""

    def test_bare_and_wrapped_equivalent(self):
        entries = [{"id": "a", "memory": "one", "score": 0.5}]
        assert normalize_results(entries) == normalize_results({"results": entries})

    def test_skips_invalid_entries(self):
        results = normalize_results([{"id": "a"}, "junk", None, {"memory": "no id"}])
        assert [m.id for m in results] == ["a"]

    def test_malformed_response_is_empty(self):
        assert normalize_results({"error": "bad"}) == []
        assert normalize_results(None) == []

    def test_preserves_backend_order(self):
        results = normalize_results([{"id": "b"}, {"id": "a"}])
        assert [m.id for m in results] == ["b", "a"]


class TestMergeAndRank:
    """Tests for merge_and_rank."""

    def test_debugging_tips_example(self):
        """Test user-scope copy wins the duplicate and order follows score."""
        user = [item("a", 0.9)]
        project = [item("a", 0.5), item("b", 0.7)]

        merged = merge_and_rank(user, project, limit=2)

        assert [(m.id, m.score) for m in merged] == [("a", 0.9), ("b", 0.7)]

    def test_no_duplicates(self):
        merged = merge_and_rank(
            [item("a", 0.1), item("b", 0.2)],
            [item("b", 0.9), item("c", 0.3), item("a", 0.8)],
            limit=10,
        )
        ids = [m.id for m in merged]
        assert len(ids) == len(set(ids))
        assert set(ids) == {"a", "b", "c"}

    def test_sorted_non_increasing(self):
        merged = merge_and_rank(
            [item("a", 0.2), item("b", None), item("c", 0.95)],
            [item("d", 0.5)],
            limit=10,
        )
        scores = [m.score or 0.0 for m in merged]
        assert scores == sorted(scores, reverse=True)
        assert merged[-1].id == "b"  # Missing score ranks as 0

    def test_nan_scores_keep_order(self):
        """Test a NaN score in a backend response cannot break the ordering."""
        results = normalize_results([
            {"id": "a", "score": 0.2},
            {"id": "b", "score": "nan"},
            {"id": "c", "score": 0.9},
        ])

        merged = merge_and_rank(results, [], limit=10)

        assert [(m.id, m.score) for m in merged] == [("c", 0.9), ("a", 0.2), ("b", None)]

    def test_non_finite_item_scores_rank_as_zero(self):
        merged = merge_and_rank(
            [item("a", float("nan")), item("b", 0.4)],
            [item("c", float("-inf")), item("d", 0.1)],
            limit=10,
        )
        assert [m.id for m in merged] == ["b", "d", "a", "c"]

    def test_ties_keep_merge_order(self):
        merged = merge_and_rank([item("a", 0.5)], [item("b", 0.5)], limit=10)
        assert [m.id for m in merged] == ["a", "b"]

    def test_limit(self):
        merged = merge_and_rank([item(str(i), i / 10) for i in range(5)], [], limit=3)
        assert [m.id for m in merged] == ["4", "3", "2"]

    def test_zero_limit(self):
        assert merge_and_rank([item("a", 0.5)], [], limit=0) == []

    def test_empty_inputs(self):
        assert merge_and_rank([], [], limit=5) == []


class TestSortByRecency:
    """Tests for sort_by_recency."""

    def test_newest_first(self):
        items = [
            item("old", created_at="2024-01-01T00:00:00Z"),
            item("new", created_at="2024-03-01T00:00:00Z"),
            item("mid", created_at="2024-02-01T00:00:00Z"),
        ]
        assert [m.id for m in sort_by_recency(items, 10)] == ["new", "mid", "old"]

    def test_updated_at_preferred(self):
        items = [
            item("edited", created_at="2023-01-01", updated_at="2024-06-01"),
            item("created", created_at="2024-05-01"),
        ]
        assert [m.id for m in sort_by_recency(items, 10)] == ["edited", "created"]

    def test_missing_timestamps_last(self):
        items = [item("none"), item("dated", created_at="2024-01-01")]
        assert [m.id for m in sort_by_recency(items, 10)] == ["dated", "none"]

    def test_limit(self):
        items = [item(str(i), created_at=f"2024-01-0{i}") for i in range(1, 8)]
        result = sort_by_recency(items, 3)
        assert len(result) == 3
        assert [m.id for m in result] == ["7", "6", "5"]


class TestExtractCreatedId:
    """Tests for extract_created_id."""

    def test_wrapped_results(self):
        assert extract_created_id({"results": [{"id": "m1"}, {"id": "m2"}]}) == "m1"

    def test_top_level_id(self):
        assert extract_created_id({"id": "m3"}) == "m3"

    def test_bare_list_id(self):
        assert extract_created_id([{"id": "m4", "event": "ADD"}]) == "m4"

    def test_bare_list_event_id(self):
        assert extract_created_id([{"event_id": "evt_1", "status": "PENDING"}]) == "evt_1"

    def test_nothing_to_extract(self):
        assert extract_created_id({"results": []}) is None
        assert extract_created_id([]) is None
        assert extract_created_id({"message": "queued"}) is None
        assert extract_created_id(None) is None
