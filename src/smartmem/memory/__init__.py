"""Memory module for smartmem.

This module provides the core data types and the normalization/ranking
rules applied to backend responses.
"""

from smartmem.memory.ranking import (
    NormalizedResponse,
    ResponseShape,
    classify_response,
    extract_created_id,
    merge_and_rank,
    normalize_results,
    sort_by_recency,
)
from smartmem.memory.types import MemoryItem, MemoryScope, OperationResult

__all__ = [
    "MemoryItem",
    "MemoryScope",
    "NormalizedResponse",
    "OperationResult",
    "ResponseShape",
    "classify_response",
    "extract_created_id",
    "merge_and_rank",
    "normalize_results",
    "sort_by_recency",
]
