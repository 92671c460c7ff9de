"""Session-scoped injection state.

SessionStateStore owns everything the injection controller needs to
remember between events: the shared pre-warmed memory cache, the
per-session injection records and a generation counter bumped by explicit
refreshes. State lives for the process lifetime; nothing is persisted.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Iterable, Optional

from smartmem.memory.types import MemoryItem


@dataclass(frozen=True)
class InjectionRecord:
    """Marker that a session has received its memory injection.

    Attributes:
        session_id: Session the record belongs to
        memories: Memory set served to the session
        generation: Shared-cache generation at the time of injection
        injected_at: Unix timestamp of the injection
    """
    session_id: str
    memories: tuple[MemoryItem, ...]
    generation: int
    injected_at: float = field(default_factory=time.time)


class SessionStateStore:
    """Process-lifetime store for the shared cache and injection records.

    The check-and-mark in ``claim`` and the record write happen under one
    lock, so two events for the same session can never both observe the
    session as not yet injected, even on a multi-threaded host.

    Example:
        >>> state = SessionStateStore()
        >>> state.initialize(recent_memories)
        >>> record = state.claim("ses_1", state.shared_memories)
        >>> state.claim("ses_1", state.shared_memories) is None
        True
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._shared: tuple[MemoryItem, ...] = ()
        self._records: dict[str, InjectionRecord] = {}
        self._generation = 0

    def initialize(self, memories: Iterable[MemoryItem] = ()) -> None:
        """Seed the shared cache (startup pre-warm) without bumping the generation."""
        with self._lock:
            self._shared = tuple(memories)

    def clear(self) -> None:
        """Drop the shared cache and every injection record."""
        with self._lock:
            self._shared = ()
            self._records.clear()
            self._generation = 0

    @property
    def shared_memories(self) -> tuple[MemoryItem, ...]:
        return self._shared

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def injected_count(self) -> int:
        return len(self._records)

    @property
    def last_injected_at(self) -> Optional[float]:
        """Unix timestamp of the most recent injection, if any."""
        with self._lock:
            if not self._records:
                return None
            return max(r.injected_at for r in self._records.values())

    def populate_shared(self, memories: Iterable[MemoryItem]) -> bool:
        """Fill the shared cache only if it is still empty.

        Returns:
            True if the cache was written
        """
        items = tuple(memories)
        with self._lock:
            if self._shared or not items:
                return False
            self._shared = items
            return True

    def replace_shared(self, memories: Iterable[MemoryItem]) -> int:
        """Overwrite the shared cache and start a new generation.

        Sessions injected under an older generation become eligible for
        one more injection on their next event.

        Returns:
            The new generation number
        """
        with self._lock:
            self._shared = tuple(memories)
            self._generation += 1
            return self._generation

    def record(self, session_id: str) -> Optional[InjectionRecord]:
        """Injection record for a session, if any."""
        return self._records.get(session_id)

    def needs_injection(self, session_id: str) -> bool:
        """Whether the session has no record for the current generation."""
        record = self.record(session_id)
        return record is None or record.generation != self._generation

    def claim(
        self,
        session_id: str,
        memories: Iterable[MemoryItem],
    ) -> Optional[InjectionRecord]:
        """Atomically mark a session as injected with the given memories.

        Args:
            session_id: Session to mark
            memories: Memory set being served to the session

        Returns:
            The new InjectionRecord, or None if the session was already
            injected in the current generation
        """
        items = tuple(memories)
        with self._lock:
            existing = self._records.get(session_id)
            if existing is not None and existing.generation == self._generation:
                return None
            record = InjectionRecord(
                session_id=session_id,
                memories=items,
                generation=self._generation,
            )
            self._records[session_id] = record
            return record
