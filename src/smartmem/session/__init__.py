"""Session layer for smartmem."""

from smartmem.session.injection import (
    InjectionMode,
    SessionInjectionController,
    format_memories_block,
    format_memories_inline,
)
from smartmem.session.state import InjectionRecord, SessionStateStore

__all__ = [
    "InjectionMode",
    "InjectionRecord",
    "SessionInjectionController",
    "SessionStateStore",
    "format_memories_block",
    "format_memories_inline",
]
