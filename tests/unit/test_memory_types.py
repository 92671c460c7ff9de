"""Unit tests for memory types module."""

import dataclasses

import pytest

from smartmem.memory.types import MemoryItem, MemoryScope, OperationResult


class TestMemoryScope:
    """Tests for MemoryScope enum."""

    def test_values(self):
        assert MemoryScope.USER.value == "user"
        assert MemoryScope.PROJECT.value == "project"

    def test_from_string(self):
        assert MemoryScope("project") is MemoryScope.PROJECT

    def test_invalid_value(self):
        with pytest.raises(ValueError):
            MemoryScope("global")


class TestMemoryItemFromDict:
    """Tests for MemoryItem.from_dict."""

    def test_snake_case_payload(self):
        """Test parsing of the API's snake_case fields."""
        item = MemoryItem.from_dict({
            "id": "m1",
            "memory": "Prefers pytest",
            "score": 0.83,
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-02-01T00:00:00Z",
            "metadata": {"source": "chat"},
        })

        assert item == MemoryItem(
            id="m1",
            memory="Prefers pytest",
            score=0.83,
            created_at="2024-01-01T00:00:00Z",
            updated_at="2024-02-01T00:00:00Z",
            metadata={"source": "chat"},
        )

    def test_camel_case_timestamps(self):
        """Test camelCase timestamps are accepted."""
        item = MemoryItem.from_dict({
            "id": "m2",
            "memory": "x",
            "createdAt": "2024-01-01",
            "updatedAt": "2024-01-02",
        })
        assert item.created_at == "2024-01-01"
        assert item.updated_at == "2024-01-02"

    def test_missing_id_returns_none(self):
        assert MemoryItem.from_dict({"memory": "orphan"}) is None
        assert MemoryItem.from_dict({"id": "", "memory": "orphan"}) is None

    def test_numeric_id_stringified(self):
        assert MemoryItem.from_dict({"id": 42}).id == "42"

    def test_invalid_score_dropped(self):
        assert MemoryItem.from_dict({"id": "m", "score": "high"}).score is None

    def test_string_score_converted(self):
        assert MemoryItem.from_dict({"id": "m", "score": "0.5"}).score == 0.5

    def test_non_finite_score_dropped(self):
        """Test NaN and infinite scores are treated as missing."""
        for raw in ("nan", "inf", "-inf", float("nan"), float("inf")):
            assert MemoryItem.from_dict({"id": "m", "score": raw}).score is None

    def test_non_dict_metadata_dropped(self):
        assert MemoryItem.from_dict({"id": "m", "metadata": "nope"}).metadata is None

    def test_missing_memory_defaults_to_empty(self):
        assert MemoryItem.from_dict({"id": "m", "memory": None}).memory == ""


class TestMemoryItem:
    """Tests for MemoryItem behavior."""

    def test_frozen(self):
        """Test items cannot be mutated."""
        item = MemoryItem(id="m", memory="x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.memory = "y"  # type: ignore[misc]

    def test_to_dict_omits_absent_fields(self):
        assert MemoryItem(id="m", memory="x").to_dict() == {"id": "m", "memory": "x"}

    def test_to_dict_camel_case(self):
        item = MemoryItem(
            id="m",
            memory="x",
            score=0.4,
            created_at="c",
            updated_at="u",
            metadata={"k": 1},
        )
        assert item.to_dict() == {
            "id": "m",
            "memory": "x",
            "score": 0.4,
            "createdAt": "c",
            "updatedAt": "u",
            "metadata": {"k": 1},
        }

    def test_recency_key_prefers_updated(self):
        assert MemoryItem(id="m", created_at="a", updated_at="b").recency_key == "b"

    def test_recency_key_falls_back(self):
        assert MemoryItem(id="m", created_at="a").recency_key == "a"
        assert MemoryItem(id="m").recency_key == ""


class TestOperationResult:
    """Tests for OperationResult serialization."""

    def test_success_with_id(self):
        assert OperationResult(ok=True, id="m1").to_dict() == {"ok": True, "id": "m1"}

    def test_success_without_id(self):
        assert OperationResult(ok=True).to_dict() == {"ok": True}

    def test_failure(self):
        result = OperationResult(ok=False, error="boom")
        assert result.to_dict() == {"ok": False, "error": "boom"}
