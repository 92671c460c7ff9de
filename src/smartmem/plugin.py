"""Host-facing memory plugin.

MemoryPlugin wires configuration, the backend service, session state, the
injection controller and auto-capture together, and exposes:

- Event handlers for the host's chat events (system prompt transform and
  incoming chat message)
- The memory tools: ``memory``, ``memory_status`` and ``memory_refresh``

An inactive plugin (no API key, or disabled by configuration) keeps the
same surface: event handlers do nothing and tools report an error.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from smartmem import __version__
from smartmem.backend.mem0 import Mem0Client
from smartmem.backend.service import MemoryService
from smartmem.capture import AutoCapture
from smartmem.config import MemorySettings, resolve_project_id
from smartmem.memory.types import MemoryScope
from smartmem.scrubber import is_fully_redacted, scrub_secrets
from smartmem.session.injection import InjectionMode, SessionInjectionController
from smartmem.session.state import SessionStateStore

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
LIST_LIMIT = 20
MAX_MEMORY_DISPLAY = 50
PREVIEW_LENGTH = 100

MEMORY_ACTIONS = ("search", "add", "delete", "list", "clear")

# Actions that honor the scope argument
SCOPED_ACTIONS = ("add", "clear")

DEFAULT_SESSION_ID = "default"


# =============================================================================
# Host Events
# =============================================================================


@dataclass
class SystemTransformEvent:
    """System prompt transform event.

    Attributes:
        session_id: Conversation identifier
        system: Mutable list of system messages for the outgoing request
    """
    session_id: Optional[str]
    system: list[str] = field(default_factory=list)


@dataclass
class ChatMessageEvent:
    """Incoming chat message event.

    Attributes:
        session_id: Conversation identifier
        message: Message object; ``content`` holds the text when it is a string
        parts: Mutable list of message parts ({"type": "text", "text": ...})
    """
    session_id: Optional[str]
    message: dict[str, Any] = field(default_factory=dict)
    parts: list[dict[str, Any]] = field(default_factory=list)

    def text(self) -> Optional[str]:
        """Textual content of the message, if any.

        Prefers ``message["content"]`` when it is a string, otherwise joins
        the non-synthetic text parts.
        """
        content = self.message.get("content")
        if isinstance(content, str):
            return content
        if content is not None:
            return None

        texts = [
            part["text"]
            for part in self.parts
            if part.get("type") == "text"
            and not part.get("synthetic")
            and isinstance(part.get("text"), str)
        ]
        return "\n".join(texts) if texts else None


# =============================================================================
# Plugin
# =============================================================================


class MemoryPlugin:
    """Long-term memory plugin for a conversational agent host.

    Args:
        settings: Loaded MemorySettings
        project_id: Resolved project identifier
        service: MemoryService (None when the plugin is inactive)
        state: SessionStateStore (default: a fresh store)
        disabled_reason: Why the plugin is inactive, if it is

    Example:
        >>> plugin = MemoryPlugin.from_settings(MemorySettings(), project_dir="/src/app")
        >>> await plugin.start()
        >>> await plugin.on_system_transform(SystemTransformEvent("ses_1", system))
        >>> await plugin.memory(action="search", query="testing")
    """

    def __init__(
        self,
        settings: MemorySettings,
        project_id: str,
        service: Optional[MemoryService] = None,
        state: Optional[SessionStateStore] = None,
        disabled_reason: Optional[str] = None,
    ):
        self.settings = settings
        self.project_id = project_id
        self.service = service
        self.state = state or SessionStateStore()
        self.disabled_reason = disabled_reason

        self.injector: Optional[SessionInjectionController] = None
        self.capture: Optional[AutoCapture] = None
        if service is not None:
            self.injector = SessionInjectionController(
                service=service,
                state=self.state,
                mode=InjectionMode(settings.injection_mode),
                limit=settings.rag_inject_limit,
            )
            self.capture = AutoCapture(service, enabled=settings.auto_add)

    @classmethod
    def from_settings(
        cls,
        settings: MemorySettings,
        project_dir: Optional[str] = None,
        state: Optional[SessionStateStore] = None,
    ) -> "MemoryPlugin":
        """Build a plugin from settings.

        Args:
            settings: Loaded MemorySettings
            project_dir: Host-provided project worktree/directory
            state: Optional pre-built SessionStateStore

        Returns:
            Active plugin, or an inactive one when no API key is configured
            or the plugin is disabled
        """
        project_id = resolve_project_id(settings.project_id, project_dir)

        if not settings.is_configured:
            logger.warning("[mem0] MEM0_API_KEY not set, plugin disabled")
            return cls(settings, project_id, state=state, disabled_reason="MEM0_API_KEY not set")
        if not settings.enabled:
            logger.warning("[mem0] Plugin disabled by MEM0_ENABLED")
            return cls(settings, project_id, state=state, disabled_reason="plugin disabled")

        client = Mem0Client(
            api_key=settings.api_key or "",
            host=settings.host,
            timeout=settings.request_timeout * 2,
        )
        service = MemoryService(
            client=client,
            user_id=settings.user_id,
            project_id=project_id,
            timeout=settings.request_timeout,
        )
        return cls(settings, project_id, service=service, state=state)

    @property
    def active(self) -> bool:
        return self.service is not None

    async def start(self) -> None:
        """Initialize state and pre-warm the memory cache (best-effort)."""
        self.state.clear()
        if self.injector is not None and self.settings.rag_enabled:
            await self.injector.warm()

    async def close(self) -> None:
        """Wait for pending captures and close the backend client."""
        if self.capture is not None:
            await self.capture.drain()
        if self.service is not None:
            await self.service.close()

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    async def on_system_transform(self, event: SystemTransformEvent) -> None:
        """Inject recent memories into the system prompt (always-on mode)."""
        if self.injector is None or not self.settings.rag_enabled:
            return
        if self.injector.mode is not InjectionMode.ALWAYS_ON:
            return
        await self.injector.inject_system(event.session_id or DEFAULT_SESSION_ID, event.system)

    async def on_chat_message(self, event: ChatMessageEvent) -> None:
        """Capture the message and, in query mode, inject relevant memories."""
        if not self.active:
            return

        text = event.text()

        if self.capture is not None:
            self.capture.submit(text)

        if (
            self.injector is not None
            and self.settings.rag_enabled
            and self.injector.mode is InjectionMode.QUERY
            and text
        ):
            await self.injector.inject_message(
                event.session_id or DEFAULT_SESSION_ID,
                text,
                event.parts,
            )

    # -------------------------------------------------------------------------
    # Tools
    # -------------------------------------------------------------------------

    def _inactive_error(self) -> dict[str, Any]:
        return {"ok": False, "error": f"Memory plugin inactive: {self.disabled_reason}"}

    async def memory(
        self,
        action: str,
        query: Optional[str] = None,
        memory_id: Optional[str] = None,
        scope: Optional[str] = None,
    ) -> dict[str, Any]:
        """Manage long-term memory.

        Args:
            action: One of search, add, delete, list, clear
            query: Search query (search) or memory content (add)
            memory_id: Memory ID (delete)
            scope: user or project for add/clear (default: project)

        Returns:
            Result dictionary with ok, and count/memories, id, scope or error
        """
        if action not in MEMORY_ACTIONS:
            return {"ok": False, "error": f"Unknown action: {action}"}

        memory_scope = MemoryScope.PROJECT
        if action in SCOPED_ACTIONS:
            try:
                memory_scope = MemoryScope(scope or MemoryScope.PROJECT.value)
            except ValueError:
                return {
                    "ok": False,
                    "error": f"Invalid scope: {scope}. "
                    f"Must be one of: {[s.value for s in MemoryScope]}",
                }

        if action == "search" and not query:
            return {"ok": False, "error": "query is required for search"}
        if action == "add" and not query:
            return {"ok": False, "error": "query (content) is required for add"}
        if action == "delete" and not memory_id:
            return {"ok": False, "error": "memory_id is required for delete"}

        if self.service is None:
            return self._inactive_error()

        if action == "search":
            results = await self.service.search(query or "", SEARCH_LIMIT)
            return {
                "ok": True,
                "count": len(results),
                "memories": [m.to_dict() for m in results[:MAX_MEMORY_DISPLAY]],
            }

        if action == "add":
            content = query or ""
            if is_fully_redacted(content):
                return {"ok": False, "error": "content is empty after secret redaction"}
            result = await self.service.add(scrub_secrets(content), memory_scope)
            return result.to_dict()

        if action == "delete":
            result = await self.service.delete(memory_id or "")
            return result.to_dict()

        if action == "list":
            results = await self.service.get_recent(LIST_LIMIT)
            return {
                "ok": True,
                "count": len(results),
                "memories": [m.to_dict() for m in results[:MAX_MEMORY_DISPLAY]],
            }

        result = await self.service.delete_all(memory_scope)
        return {**result.to_dict(), "scope": memory_scope.value}

    async def memory_status(self) -> dict[str, Any]:
        """Report plugin status and configuration."""
        status: dict[str, Any] = {
            "ok": True,
            "version": __version__,
            "active": self.active,
            "config": {
                "enabled": self.settings.enabled,
                "rag_enabled": self.settings.rag_enabled,
                "auto_add_enabled": self.settings.auto_add,
                "injection_mode": self.settings.injection_mode,
                "user_id": self.settings.user_id,
                "project_id": self.project_id,
            },
            "stats": {
                "injected_sessions": self.state.injected_count,
                "cached_memories_count": len(self.state.shared_memories),
                "cache_generation": self.state.generation,
                "last_injected_at": self.state.last_injected_at,
                "pending_captures": self.capture.pending if self.capture else 0,
            },
        }
        if self.disabled_reason:
            status["disabled_reason"] = self.disabled_reason
        return status

    async def memory_refresh(self) -> dict[str, Any]:
        """Force a refresh of the shared memory cache."""
        if self.injector is None:
            return self._inactive_error()

        memories = await self.injector.refresh()
        return {
            "ok": True,
            "refreshed": True,
            "count": len(memories),
            "memories": [m.memory[:PREVIEW_LENGTH] for m in memories],
        }
