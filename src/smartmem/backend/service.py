"""Timeout-bounded, fail-open access to the memory backend.

MemoryService is the only path to the remote memory store. Every remote
call is raced against a deadline, and timeouts or transport errors are
logged and converted into empty results or failed OperationResults. Memory
features must never block or break the primary chat flow, so nothing in
this module raises to its caller.
"""

import asyncio
import logging

from smartmem.backend.deadline import DEFAULT_TIMEOUT, run_with_deadline
from smartmem.backend.mem0 import Mem0Client
from smartmem.memory.ranking import (
    extract_created_id,
    merge_and_rank,
    normalize_results,
    sort_by_recency,
)
from smartmem.memory.types import MemoryItem, MemoryScope, OperationResult

logger = logging.getLogger(__name__)


class MemoryService:
    """Scoped memory operations over a Mem0Client.

    Args:
        client: Mem0Client (or compatible) used for remote calls
        user_id: Identifier for the user scope
        project_id: Identifier for the project scope
        timeout: Deadline for each remote call in seconds (default: 10.0)

    Example:
        >>> service = MemoryService(Mem0Client(api_key), "alice", "3k9x1")
        >>> result = await service.add("Prefers pytest over unittest")
        >>> hits = await service.search("testing framework", limit=5)
    """

    def __init__(
        self,
        client: Mem0Client,
        user_id: str,
        project_id: str,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._client = client
        self.user_id = user_id
        self.project_id = project_id
        self.timeout = timeout

    def scope_params(self, scope: MemoryScope) -> dict[str, str]:
        """Namespace parameters for a scope."""
        if scope is MemoryScope.USER:
            return {"user_id": self.user_id}
        return {"user_id": self.user_id, "run_id": self.project_id}

    async def close(self) -> None:
        """Close the underlying client."""
        await self._client.close()

    async def add(
        self,
        content: str,
        scope: MemoryScope = MemoryScope.PROJECT,
    ) -> OperationResult:
        """Store content as a new memory.

        Args:
            content: Memory text (callers scrub secrets beforehand)
            scope: Target scope (default: PROJECT)

        Returns:
            OperationResult with the created id when the backend reports one
        """
        outcome = await run_with_deadline(
            self._client.add(content, self.scope_params(scope)),
            self.timeout,
            label="add",
        )
        if not outcome.ok:
            return OperationResult(ok=False, error=outcome.error or "Timeout or API error")

        return OperationResult(ok=True, id=extract_created_id(outcome.value))

    async def search(self, query: str, limit: int = 5) -> list[MemoryItem]:
        """Search user and project scopes concurrently and merge the results.

        Both scoped searches run at the same time and are individually
        deadline-bounded; a failed or timed-out scope contributes nothing.
        User-scope results win duplicate ids.

        Args:
            query: Search query text
            limit: Maximum number of results (applied per scope and overall)

        Returns:
            Deduplicated results sorted by non-increasing score
        """
        user_outcome, project_outcome = await asyncio.gather(
            run_with_deadline(
                self._client.search(query, self.scope_params(MemoryScope.USER), limit=limit),
                self.timeout,
                label="search[user]",
            ),
            run_with_deadline(
                self._client.search(query, self.scope_params(MemoryScope.PROJECT), limit=limit),
                self.timeout,
                label="search[project]",
            ),
        )

        user_results = normalize_results(user_outcome.value_or([]))
        project_results = normalize_results(project_outcome.value_or([]))
        return merge_and_rank(user_results, project_results, limit)

    async def get_recent(self, limit: int = 10) -> list[MemoryItem]:
        """List the most recently updated project memories.

        Args:
            limit: Maximum number of memories to return

        Returns:
            Project memories, newest first
        """
        outcome = await run_with_deadline(
            self._client.get_all(self.scope_params(MemoryScope.PROJECT), limit=limit),
            self.timeout,
            label="get_recent",
        )
        return sort_by_recency(normalize_results(outcome.value_or([])), limit)

    async def delete(self, memory_id: str) -> OperationResult:
        """Delete a single memory by id."""
        outcome = await run_with_deadline(
            self._client.delete(memory_id),
            self.timeout,
            label="delete",
        )
        if not outcome.ok:
            return OperationResult(ok=False, error=outcome.error or "Timeout or API error")
        return OperationResult(ok=True)

    async def delete_all(self, scope: MemoryScope) -> OperationResult:
        """Delete every memory in a scope.

        Bulk deletion gets twice the standard deadline.
        """
        outcome = await run_with_deadline(
            self._client.delete_all(self.scope_params(scope)),
            self.timeout * 2,
            label="delete_all",
        )
        if not outcome.ok:
            return OperationResult(ok=False, error=outcome.error or "Timeout or API error")
        return OperationResult(ok=True)
