"""Run-with-deadline combinator for remote calls.

Every call to the memory backend goes through ``run_with_deadline``, which
races the call against a timer and reports a tagged outcome instead of
raising. A timed-out call is cancelled in place; whatever it would have
produced is discarded, so no state is mutated after the deadline.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 10.0


class OutcomeStatus(Enum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass
class Outcome(Generic[T]):
    """Tagged result of a deadline-bounded call.

    Attributes:
        status: COMPLETED, TIMED_OUT or FAILED
        value: Return value of the call (COMPLETED only)
        error: Human-readable error description (TIMED_OUT/FAILED)
    """
    status: OutcomeStatus
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.COMPLETED

    def value_or(self, fallback: T) -> T:
        """Return the value if the call completed, otherwise the fallback."""
        if self.ok:
            return self.value  # type: ignore[return-value]
        return fallback


async def run_with_deadline(
    call: Awaitable[T],
    timeout: float = DEFAULT_TIMEOUT,
    label: str = "operation",
) -> Outcome[T]:
    """Await a call with a deadline, converting failures into an Outcome.

    Args:
        call: Awaitable to run (typically a backend coroutine)
        timeout: Deadline in seconds
        label: Operation name used in log messages

    Returns:
        Outcome tagged COMPLETED, TIMED_OUT or FAILED. Never raises for
        timeouts or errors raised by the call; task cancellation still
        propagates.

    Example:
        >>> outcome = await run_with_deadline(client.search(...), 10.0, "search")
        >>> results = outcome.value_or([])
    """
    try:
        value = await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"[mem0] {label} timed out after {timeout}s")
        return Outcome(OutcomeStatus.TIMED_OUT, error=f"{label} timed out after {timeout}s")
    except Exception as e:
        logger.warning(f"[mem0] {label} failed: {e}")
        return Outcome(OutcomeStatus.FAILED, error=str(e) or type(e).__name__)

    return Outcome(OutcomeStatus.COMPLETED, value=value)
