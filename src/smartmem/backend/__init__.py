"""Backend layer for smartmem."""

from smartmem.backend.deadline import Outcome, OutcomeStatus, run_with_deadline
from smartmem.backend.mem0 import BackendError, Mem0Client
from smartmem.backend.service import MemoryService

__all__ = [
    "BackendError",
    "Mem0Client",
    "MemoryService",
    "Outcome",
    "OutcomeStatus",
    "run_with_deadline",
]
