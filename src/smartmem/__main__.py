"""MCP server entry point for smartmem.

This module provides the main entry point for the MCP server with:
- CLI argument parsing for flexible configuration
- Pydantic Settings for environment variable support
- Plugin initialization and cache pre-warming
- Tool registration for the memory tools
- Signal handling for graceful shutdown
- Logging to stderr (CRITICAL for MCP stdio)

Usage:
    python -m smartmem [options]

    Options:
        --project-dir PATH      Project directory used to derive the project id
        --user-id ID            User identifier (default: anonymous)
        --project-id ID         Explicit project identifier
        --mode MODE             Injection mode: always_on or query
        --log-level LEVEL       Logging level (default: INFO)
        --call TOOL --args JSON Invoke a tool directly and print the result
"""

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from smartmem.config import MemorySettings
from smartmem.plugin import MemoryPlugin

# Initialize FastMCP server
mcp = FastMCP("smartmem")

# Global plugin (initialized in main)
plugin: Optional[MemoryPlugin] = None

logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """Configure logging to stderr (never stdout for MCP servers).

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,  # Critical: never use stdout in MCP servers
    )

    logger.info(f"Logging initialized at {log_level.upper()} level")


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments with configuration defaults.

    Configuration precedence:
        1. CLI arguments (highest priority)
        2. Environment variables (MEM0_ prefix)
        3. Defaults (lowest priority)
    """
    settings = MemorySettings()

    parser = argparse.ArgumentParser(
        description="smartmem MCP server for long-term agent memory",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Direct tool invocation mode (for hooks)
    parser.add_argument(
        "--call",
        type=str,
        metavar="TOOL_NAME",
        help="Directly invoke a tool by name (memory, memory_status, memory_refresh)",
    )
    parser.add_argument(
        "--args",
        type=str,
        default="{}",
        help="JSON arguments for the tool (used with --call)",
    )

    parser.add_argument(
        "--project-dir",
        type=str,
        default=os.getcwd(),
        help="Project directory used to derive the project id",
    )
    parser.add_argument(
        "--user-id",
        type=str,
        default=settings.user_id,
        help="User identifier for user-scoped memories",
    )
    parser.add_argument(
        "--project-id",
        type=str,
        default=settings.project_id,
        help="Explicit project identifier (overrides --project-dir hashing)",
    )
    parser.add_argument(
        "--mode",
        type=str,
        default=settings.injection_mode,
        choices=["always_on", "query"],
        help="Memory injection mode",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    return parser.parse_args(argv)


async def initialize_plugin(args: argparse.Namespace) -> MemoryPlugin:
    """Build the plugin from settings and CLI overrides, then pre-warm it.

    Args:
        args: Parsed CLI arguments

    Returns:
        Started MemoryPlugin (inactive if no API key is configured)
    """
    logger.info("Initializing plugin...")

    settings = MemorySettings(
        user_id=args.user_id,
        project_id=args.project_id,
        injection_mode=args.mode,
        log_level=args.log_level,
    )
    memory_plugin = MemoryPlugin.from_settings(settings, project_dir=args.project_dir)

    logger.info(
        f"Configuration: "
        f"active={memory_plugin.active}, "
        f"user_id={settings.user_id}, "
        f"project_id={memory_plugin.project_id}, "
        f"mode={settings.injection_mode}, "
        f"rag_enabled={settings.rag_enabled}, "
        f"auto_add={settings.auto_add}"
    )

    await memory_plugin.start()
    return memory_plugin


# =============================================================================
# MCP Tool Handlers
# =============================================================================


@mcp.tool(name="memory")
async def memory_tool(
    action: str,
    query: Optional[str] = None,
    memory_id: Optional[str] = None,
    scope: Optional[str] = None,
) -> dict[str, Any]:
    """Manage long-term memory.

    Actions: search (find relevant memories), add (store new memory),
    delete (remove by ID), list (show recent), clear (delete all memories
    in a scope).

    Args:
        action: Action to perform (search, add, delete, list, clear)
        query: Search query or memory content to add
        memory_id: Memory ID for delete action
        scope: Scope for add/clear: user or project (default: project)

    Returns:
        Result dictionary with:
        - ok: Boolean indicating operation success
        - count / memories: Matching memories (search, list)
        - id: Created memory ID (add)
        - scope: Cleared scope (clear)
        - error: Error message (if failed)
    """
    if plugin is None:
        return {"ok": False, "error": "Server not initialized"}

    try:
        return await plugin.memory(
            action=action,
            query=query,
            memory_id=memory_id,
            scope=scope,
        )
    except Exception as e:
        logger.error(f"memory_tool failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}


@mcp.tool(name="memory_status")
async def memory_status_tool() -> dict[str, Any]:
    """Check memory plugin status and configuration."""
    if plugin is None:
        return {"ok": False, "error": "Server not initialized"}

    try:
        return await plugin.memory_status()
    except Exception as e:
        logger.error(f"memory_status_tool failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}


@mcp.tool(name="memory_refresh")
async def memory_refresh_tool() -> dict[str, Any]:
    """Force refresh the memory cache used for system prompt injection."""
    if plugin is None:
        return {"ok": False, "error": "Server not initialized"}

    try:
        return await plugin.memory_refresh()
    except Exception as e:
        logger.error(f"memory_refresh_tool failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}


# =============================================================================
# Direct Tool Invocation (for hooks)
# =============================================================================


async def call_tool_directly(
    tool_name: str,
    args_json: str,
    memory_plugin: MemoryPlugin,
) -> dict[str, Any]:
    """Directly invoke a tool without MCP protocol overhead.

    Args:
        tool_name: Name of the tool to call (memory, memory_status, memory_refresh)
        args_json: JSON string of arguments for the tool
        memory_plugin: Initialized MemoryPlugin

    Returns:
        Tool result as dictionary
    """
    global plugin
    plugin = memory_plugin

    try:
        tool_args = json.loads(args_json)
    except json.JSONDecodeError as e:
        return {"ok": False, "error": f"Invalid JSON arguments: {e}"}

    tool_handlers = {
        "memory": memory_tool,
        "memory_status": memory_status_tool,
        "memory_refresh": memory_refresh_tool,
    }

    handler = tool_handlers.get(tool_name)
    if not handler:
        return {
            "ok": False,
            "error": f"Unknown tool: {tool_name}. Available: {list(tool_handlers.keys())}",
        }

    try:
        return await handler(**tool_args)
    except TypeError as e:
        return {"ok": False, "error": f"Invalid arguments for {tool_name}: {e}"}


def run_direct_call(args: argparse.Namespace) -> None:
    """Run a direct tool call and print result to stdout."""
    setup_logging("WARNING")  # Quiet logging for direct calls

    async def _run():
        memory_plugin = await initialize_plugin(args)
        try:
            result = await call_tool_directly(args.call, args.args, memory_plugin)
            print(json.dumps(result, indent=2))
        finally:
            await memory_plugin.close()

    asyncio.run(_run())


# =============================================================================
# Signal Handling
# =============================================================================


def handle_shutdown(signum: int, frame: Any) -> None:
    """Handle SIGINT/SIGTERM for graceful shutdown."""
    logger.info(f"Received signal {signum}, shutting down gracefully...")
    sys.exit(0)


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    """Main entry point for MCP server.

    Workflow:
    1. Parse CLI arguments
    2. If --call provided, run direct tool invocation and exit
    3. Setup logging
    4. Initialize and pre-warm the plugin
    5. Register signal handlers
    6. Run MCP server with stdio transport
    """
    global plugin

    args = parse_arguments()

    if args.call:
        run_direct_call(args)
        return

    setup_logging(args.log_level)

    logger.info("Starting smartmem MCP server...")

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        plugin = loop.run_until_complete(initialize_plugin(args))
        # HTTP connections are bound to this loop; they reopen lazily on the server's loop
        loop.run_until_complete(plugin.close())

        signal.signal(signal.SIGINT, handle_shutdown)
        signal.signal(signal.SIGTERM, handle_shutdown)

        logger.info("MCP server ready, starting stdio transport...")

        # mcp.run() is synchronous and manages its own event loop
        mcp.run(transport="stdio")

    except Exception as e:
        logger.error(f"Server failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if plugin is not None:
            try:
                loop.run_until_complete(plugin.close())
            except Exception as e:
                logger.warning(f"Cleanup failed: {e}")
        loop.close()


if __name__ == "__main__":
    main()
