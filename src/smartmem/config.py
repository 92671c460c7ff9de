"""Configuration settings for smartmem.

This module provides Pydantic Settings for configuration management with:
- Environment variable support (MEM0_ prefix)
- CLI argument override support
- Type validation and defaults
- Stable project identifiers derived from the project directory
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class MemorySettings(BaseSettings):
    """Configuration settings for the memory plugin.

    Settings are loaded from environment variables with the MEM0_ prefix.
    CLI arguments can override these settings when provided.

    Attributes:
        api_key: Mem0 API key (required; absence disables the plugin)
        user_id: User identifier for user-scoped memories (default: anonymous)
        project_id: Project identifier (default: derived from project directory)
        enabled: Master switch for the plugin (default: True)
        rag_enabled: Inject memories into model context (default: True)
        auto_add: Capture user messages as memories (default: True)
        injection_mode: always_on (system prompt) or query (first message)
        host: Mem0 API base URL (default: https://api.mem0.ai)
        request_timeout: Per-call deadline in seconds (default: 10.0)
        rag_inject_limit: Maximum memories injected per session (default: 10)
        log_level: Logging level (default: INFO)

    Example:
        >>> settings = MemorySettings()
        >>> print(settings.user_id)
        anonymous

        >>> # Override via environment
        >>> # MEM0_USER_ID=alice
        >>> settings = MemorySettings()
        >>> print(settings.user_id)
        alice
    """

    model_config = SettingsConfigDict(
        env_prefix="MEM0_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials and identity
    api_key: Optional[str] = Field(
        default=None,
        description="Mem0 API key (plugin is disabled when unset)",
    )
    user_id: str = Field(
        default="anonymous",
        description="User identifier for user-scoped memories",
    )
    project_id: Optional[str] = Field(
        default=None,
        description="Project identifier (default: hash of the project directory)",
    )

    # Feature toggles
    enabled: bool = Field(default=True, description="Enable the memory plugin")
    rag_enabled: bool = Field(
        default=True,
        description="Inject retrieved memories into model context",
    )
    auto_add: bool = Field(
        default=True,
        description="Automatically store user messages as memories",
    )
    injection_mode: Literal["always_on", "query"] = Field(
        default="always_on",
        description="always_on: system prompt injection; query: first-message search",
    )

    # Backend
    host: str = Field(
        default="https://api.mem0.ai",
        description="Mem0 API base URL",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Deadline for each remote call in seconds",
    )
    rag_inject_limit: int = Field(
        default=10,
        ge=1,
        description="Maximum number of memories injected per session",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @property
    def is_configured(self) -> bool:
        """True when an API key is present."""
        return bool(self.api_key)


def hash_string(value: str) -> str:
    """Hash a string to a short, stable base36 identifier.

    Multiply-by-31 hash over UTF-16 code units with 32-bit signed
    wraparound, rendered as base36 of the absolute value. Lone surrogates
    (undecodable bytes in filesystem paths) hash as their code unit. Project ids
    produced here match those written by other clients of the same store.

    Args:
        value: String to hash (typically a project directory path)

    Returns:
        Base36 hash string

    Example:
        >>> hash_string("a")
        '2p'
    """
    acc = 0
    data = value.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        acc = (acc * 31 + code_unit) & 0xFFFFFFFF

    if acc >= 0x80000000:
        acc -= 0x100000000
    acc = abs(acc)

    if acc == 0:
        return "0"
    digits = []
    while acc:
        acc, rem = divmod(acc, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def resolve_project_id(
    explicit: Optional[str] = None,
    project_dir: Optional[str] = None,
) -> str:
    """Resolve the project identifier.

    Args:
        explicit: Project id provided by the host or configuration
        project_dir: Project worktree or directory path

    Returns:
        The explicit id when given, otherwise a hash of the directory
        (or of "default" when no directory is known)
    """
    if explicit:
        return explicit
    return hash_string(project_dir or "default")
