"""Smartmem - long-term memory for coding agents.

This package gives a conversational agent host persistent memory backed by
the Mem0 hosted API: relevant memories are injected into model context once
per session, user messages are captured (scrubbed of secrets), and a small
tool surface lets the agent search and manage its memories.

Main components:
- plugin: Host-facing facade (chat events + memory tools)
- backend.service: Timeout-bounded, fail-open access to the memory backend
- session.injection: Once-per-session memory injection
- config: Pydantic Settings for configuration management

Usage:
    # Run as MCP server
    python -m smartmem

    # Or use the CLI
    smartmem --help
"""

__all__ = ["main"]
__version__ = "0.1.0"


def main() -> None:
    """Main entry point for the smartmem MCP server."""
    from smartmem.__main__ import main as _main
    _main()
