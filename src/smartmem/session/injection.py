"""Once-per-session memory injection into model context.

Two strategies share the same cache and idempotency rules:

- ALWAYS_ON: the most recent project memories are appended to the system
  prompt of every new session, independent of what the user says. The
  shared cache is pre-warmed at startup.
- QUERY: on the first message of a session, memories similar to a prefix
  of that message are prepended to the message as a synthetic text part.

A session is injected at most once per cache generation. ``refresh``
re-fetches the shared cache and starts a new generation; it never touches
contexts that were already built.
"""

import logging
from enum import Enum
from typing import Any, Optional, Sequence

from smartmem.backend.service import MemoryService
from smartmem.memory.types import MemoryItem
from smartmem.session.state import SessionStateStore

logger = logging.getLogger(__name__)

QUERY_PREFIX_LENGTH = 200


class InjectionMode(Enum):
    ALWAYS_ON = "always_on"
    QUERY = "query"


def _format_line(memory: MemoryItem) -> str:
    score = f" ({round(memory.score * 100)}%)" if memory.score else ""
    return f"• {memory.memory}{score}"


def format_memories_block(memories: Sequence[MemoryItem]) -> str:
    """Format memories as a tagged block for the system prompt.

    Args:
        memories: Memories to format

    Returns:
        ``<memory scope="always-on" count="N">`` block, or "" when empty

    Example:
        >>> print(format_memories_block([MemoryItem(id="1", memory="Uses uv")]))
        <memory scope="always-on" count="1">
        The following memories were retrieved from long-term storage:
        • Uses uv
        </memory>
    """
    if not memories:
        return ""

    return "\n".join([
        f'<memory scope="always-on" count="{len(memories)}">',
        "The following memories were retrieved from long-term storage:",
        "\n".join(_format_line(m) for m in memories),
        "</memory>",
    ])


def format_memories_inline(memories: Sequence[MemoryItem]) -> str:
    """Format memories as a short leading block for a user message."""
    if not memories:
        return ""
    lines = [f"[Relevant memories: {len(memories)}]"]
    lines.extend(_format_line(m) for m in memories)
    return "\n".join(lines)


class SessionInjectionController:
    """Decide whether and what memory content to inject for each session.

    Args:
        service: MemoryService used for fetches
        state: SessionStateStore owning the cache and injection records
        mode: Injection strategy (default: ALWAYS_ON)
        limit: Maximum memories injected per session (default: 10)
    """

    def __init__(
        self,
        service: MemoryService,
        state: SessionStateStore,
        mode: InjectionMode = InjectionMode.ALWAYS_ON,
        limit: int = 10,
    ):
        self.service = service
        self.state = state
        self.mode = mode
        self.limit = limit

    async def warm(self) -> int:
        """Pre-warm the shared cache with recent project memories.

        Only the always-on strategy pre-warms; best-effort, an unreachable
        backend simply leaves the cache empty.

        Returns:
            Number of memories cached
        """
        if self.mode is not InjectionMode.ALWAYS_ON:
            return 0
        memories = await self.service.get_recent(self.limit)
        self.state.initialize(memories)
        logger.info(f"Pre-warmed memory cache with {len(memories)} memories")
        return len(memories)

    async def refresh(self) -> list[MemoryItem]:
        """Re-fetch recent memories and overwrite the shared cache."""
        memories = await self.service.get_recent(self.limit)
        generation = self.state.replace_shared(memories)
        logger.info(f"Refreshed memory cache: {len(memories)} memories (generation {generation})")
        return memories

    async def _resolve_memories(self, query: Optional[str] = None) -> list[MemoryItem]:
        shared = self.state.shared_memories
        if shared:
            return list(shared)

        if self.mode is InjectionMode.ALWAYS_ON:
            fetched = await self.service.get_recent(self.limit)
            self.state.populate_shared(fetched)
            return fetched

        if not query or not query.strip():
            return []
        return await self.service.search(query[:QUERY_PREFIX_LENGTH], self.limit)

    async def inject_system(self, session_id: str, system: list[str]) -> bool:
        """Append the memory block to a session's system messages.

        Args:
            session_id: Session the system prompt belongs to
            system: Mutable list of system messages

        Returns:
            True if a block was appended
        """
        if not self.state.needs_injection(session_id):
            return False

        memories = await self._resolve_memories()
        record = self.state.claim(session_id, memories)
        if record is None or not record.memories:
            return False

        system.append(format_memories_block(record.memories))
        logger.debug(f"Injected {len(record.memories)} memories into system prompt of {session_id}")
        return True

    async def inject_message(
        self,
        session_id: str,
        text: str,
        parts: list[dict[str, Any]],
    ) -> bool:
        """Prepend relevant memories to the first message of a session.

        Args:
            session_id: Session the message belongs to
            text: User message text used as the search query
            parts: Mutable list of message parts

        Returns:
            True if a memory part was prepended
        """
        if not self.state.needs_injection(session_id):
            return False

        memories = await self._resolve_memories(query=text)
        record = self.state.claim(session_id, memories)
        if record is None or not record.memories:
            return False

        parts.insert(0, {
            "type": "text",
            "text": format_memories_inline(record.memories),
            "synthetic": True,
        })
        logger.debug(f"Injected {len(record.memories)} memories into first message of {session_id}")
        return True
