"""Core data types for the memory system.

This module defines the data structures used throughout smartmem:
- MemoryItem: A memory entry as returned by the backend
- MemoryScope: Enum for partitioning the storage namespace
- OperationResult: Result of a write operation (add/delete/delete-all)
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class MemoryScope(Enum):
    """Storage namespaces for memories.

    - USER: Memories that follow the user across every project
    - PROJECT: Memories tied to the current project
    """
    USER = "user"
    PROJECT = "project"


@dataclass(frozen=True)
class MemoryItem:
    """A memory entry returned by the memory backend.

    Items are immutable once built from a backend response.

    Attributes:
        id: Unique, backend-assigned identifier
        memory: Free-text memory content
        score: Relevance score from 0.0 to 1.0 (search results only)
        created_at: Creation timestamp string (ISO-8601 expected)
        updated_at: Last update timestamp string (ISO-8601 expected)
        metadata: Optional open key-value metadata
    """
    id: str
    memory: str = ""
    score: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Optional["MemoryItem"]:
        """Build a MemoryItem from a raw backend entry.

        Accepts both snake_case (``created_at``) and camelCase
        (``createdAt``) timestamp keys. Scores that are not finite numbers
        (NaN, infinity) are dropped.

        Args:
            data: Raw entry from a backend response

        Returns:
            MemoryItem, or None if the entry carries no identifier
        """
        memory_id = data.get("id")
        if memory_id is None or memory_id == "":
            return None

        score = data.get("score")
        if score is not None:
            try:
                score = float(score)
            except (TypeError, ValueError):
                score = None
        if score is not None and not math.isfinite(score):
            score = None

        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            metadata = None

        return cls(
            id=str(memory_id),
            memory=str(data.get("memory") or ""),
            score=score,
            created_at=data.get("created_at") or data.get("createdAt"),
            updated_at=data.get("updated_at") or data.get("updatedAt"),
            metadata=metadata,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for tool responses, omitting absent fields."""
        data: dict[str, Any] = {"id": self.id, "memory": self.memory}
        if self.score is not None:
            data["score"] = self.score
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    @property
    def recency_key(self) -> str:
        """Most recent timestamp, preferring updated_at over created_at."""
        return self.updated_at or self.created_at or ""


@dataclass
class OperationResult:
    """Result of a backend write operation.

    Attributes:
        ok: Whether the operation succeeded
        id: ID of the created memory (add only, when the backend reports one)
        error: Error message (if failed)
    """
    ok: bool
    id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ok": self.ok}
        if self.id is not None:
            data["id"] = self.id
        if self.error is not None:
            data["error"] = self.error
        return data
