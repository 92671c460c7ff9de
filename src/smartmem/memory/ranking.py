"""Normalization and ranking of memory backend responses.

The backend answers list and search calls either with a bare list of
entries or with an object wrapping them in a ``results`` field. Responses
are classified into one of these shapes first and then matched explicitly;
anything else normalizes to an empty result.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from smartmem.memory.types import MemoryItem

logger = logging.getLogger(__name__)


class ResponseShape(Enum):
    """Recognized backend response shapes."""
    BARE_LIST = "bare_list"
    WRAPPED = "wrapped"
    UNRECOGNIZED = "unrecognized"


@dataclass
class NormalizedResponse:
    """A backend response tagged with its shape.

    Attributes:
        shape: Which variant the response matched
        entries: Raw entries (empty for UNRECOGNIZED)
    """
    shape: ResponseShape
    entries: list[Any] = field(default_factory=list)


def classify_response(response: Any) -> NormalizedResponse:
    """Tag a raw backend response with its shape.

    Args:
        response: Decoded JSON body from the backend

    Returns:
        NormalizedResponse for one of BARE_LIST, WRAPPED or UNRECOGNIZED
    """
    if isinstance(response, list):
        return NormalizedResponse(ResponseShape.BARE_LIST, list(response))
    if isinstance(response, dict) and isinstance(response.get("results"), list):
        return NormalizedResponse(ResponseShape.WRAPPED, list(response["results"]))
    return NormalizedResponse(ResponseShape.UNRECOGNIZED)


def normalize_results(response: Any) -> list[MemoryItem]:
    """Convert a raw backend response into MemoryItems.

    Entries that are not objects or carry no identifier are skipped.

    Args:
        response: Decoded JSON body from the backend

    Returns:
        MemoryItems in backend order (empty for unrecognized shapes)
    """
    normalized = classify_response(response)

    if normalized.shape is ResponseShape.UNRECOGNIZED:
        if response is not None:
            logger.debug(f"Unrecognized response shape: {type(response).__name__}")
        return []

    items: list[MemoryItem] = []
    for entry in normalized.entries:
        if not isinstance(entry, dict):
            continue
        item = MemoryItem.from_dict(entry)
        if item is not None:
            items.append(item)
    return items


def _rank_score(item: MemoryItem) -> float:
    if item.score is None or not math.isfinite(item.score):
        return 0.0
    return item.score


def merge_and_rank(
    primary: list[MemoryItem],
    secondary: list[MemoryItem],
    limit: int,
) -> list[MemoryItem]:
    """Merge two result lists, deduplicate by id and rank by score.

    Primary results come first, so on a duplicate id the primary copy is
    kept. The sort is stable and treats a missing or non-finite score as 0.

    Args:
        primary: Results that win duplicate ids (user scope)
        secondary: Remaining results (project scope)
        limit: Maximum number of results to return

    Returns:
        Deduplicated results sorted by non-increasing score

    Example:
        >>> a = MemoryItem(id="a", score=0.9)
        >>> merged = merge_and_rank(
        ...     [a], [MemoryItem(id="a", score=0.5), MemoryItem(id="b", score=0.7)], 2
        ... )
        >>> [(m.id, m.score) for m in merged]
        [('a', 0.9), ('b', 0.7)]
    """
    seen: set[str] = set()
    combined: list[MemoryItem] = []
    for item in [*primary, *secondary]:
        if item.id in seen:
            continue
        seen.add(item.id)
        combined.append(item)

    combined.sort(key=_rank_score, reverse=True)
    return combined[: max(limit, 0)]


def sort_by_recency(items: list[MemoryItem], limit: int) -> list[MemoryItem]:
    """Sort by most recent timestamp, newest first, and truncate.

    Timestamps are compared as strings, which orders ISO-8601 values
    correctly. Items without any timestamp sort last.
    """
    ordered = sorted(items, key=lambda m: m.recency_key, reverse=True)
    return ordered[: max(limit, 0)]


def extract_created_id(response: Any) -> Optional[str]:
    """Extract the id of the first created memory from an add response.

    Handles ``{"results": [{"id": ...}]}``, ``{"id": ...}`` and bare lists
    whose first entry carries ``id`` or ``event_id``.
    """
    normalized = classify_response(response)

    if normalized.shape is ResponseShape.WRAPPED:
        first = normalized.entries[0] if normalized.entries else None
        if isinstance(first, dict) and first.get("id"):
            return str(first["id"])
    elif normalized.shape is ResponseShape.BARE_LIST:
        first = normalized.entries[0] if normalized.entries else None
        if isinstance(first, dict):
            found = first.get("id") or first.get("event_id")
            return str(found) if found else None
        return None

    if isinstance(response, dict) and response.get("id"):
        return str(response["id"])
    return None
