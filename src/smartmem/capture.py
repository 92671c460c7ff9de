"""Automatic capture of user messages as project memories.

Eligible user messages are scrubbed of secrets and submitted to the
backend as detached background tasks. The chat flow never waits on a
capture: submission failures are logged and dropped.
"""

import asyncio
import logging
from typing import Any, Optional

from smartmem.backend.service import MemoryService
from smartmem.memory.types import MemoryScope, OperationResult
from smartmem.scrubber import REDACTION_MARKER, scrub_secrets

logger = logging.getLogger(__name__)

# Raw message length cap, checked before scrubbing
MAX_MESSAGE_LENGTH = 2000

# Minimum meaningful length, checked after scrubbing
MIN_CAPTURE_LENGTH = 10


def capturable_content(message: Any) -> Optional[str]:
    """Return the scrubbed text to persist, or None if the message is ineligible.

    A message is ineligible when it is not text, when the raw text exceeds
    MAX_MESSAGE_LENGTH, or when the scrubbed text is fully redacted or
    shorter than MIN_CAPTURE_LENGTH once stripped.

    Args:
        message: Candidate message content

    Returns:
        Scrubbed text, or None

    Example:
        >>> capturable_content("I prefer dark mode UI")
        'I prefer dark mode UI'
        >>> capturable_content("ok") is None
        True
    """
    if not isinstance(message, str) or not message:
        return None
    if len(message) > MAX_MESSAGE_LENGTH:
        return None

    scrubbed = scrub_secrets(message)
    if scrubbed.strip() == REDACTION_MARKER:
        return None
    if len(scrubbed.strip()) < MIN_CAPTURE_LENGTH:
        return None
    return scrubbed


class AutoCapture:
    """Submit eligible user messages as project memories in the background.

    Pending tasks are tracked so they are not garbage collected mid-flight
    and so shutdown can wait for them via ``drain``.

    Args:
        service: MemoryService used for persistence
        enabled: Whether capture is active (default: True)
    """

    def __init__(self, service: MemoryService, enabled: bool = True):
        self.service = service
        self.enabled = enabled
        self._pending: set[asyncio.Task[OperationResult]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, message: Any) -> Optional[asyncio.Task[OperationResult]]:
        """Schedule persistence of a message without waiting for it.

        Must be called from a running event loop.

        Args:
            message: Candidate message content

        Returns:
            The scheduled task, or None if the message was not eligible
        """
        if not self.enabled:
            return None

        content = capturable_content(message)
        if content is None:
            return None

        task = asyncio.create_task(self.service.add(content, MemoryScope.PROJECT))
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[OperationResult]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Auto-capture failed: {exc}")
            return
        result = task.result()
        if not result.ok:
            logger.debug(f"Auto-capture not stored: {result.error}")

    async def drain(self) -> None:
        """Wait for every pending capture to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
