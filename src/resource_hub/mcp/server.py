"""MCP Server for the resource catalog using stdio transport.

This module implements the Model Context Protocol server that lets an
agent log in, search, filter, sort and edit the resource catalog kept in
sync with a Meilisearch index.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..catalog.session import CatalogSession
from ..logger import setup_logging
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("resource-hub")

# Global session instance (initialized in lifespan)
_session: CatalogSession | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_session() -> CatalogSession:
    """Get the global CatalogSession instance.

    Raises:
        RuntimeError: If session is not initialized
    """
    if _session is None:
        raise RuntimeError(
            "CatalogSession not initialized. Server lifespan not started."
        )
    return _session


def set_session(session: CatalogSession | None) -> None:
    """Set the global CatalogSession instance, or None to clear."""
    global _session
    _session = session


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set the global ToolRegistry instance, or None to clear."""
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available catalog tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch.

    Args:
        name: The name of the tool to execute.
        arguments: Tool arguments (optional).

    Returns:
        CallToolResult with tool output content and optional isError flag.
    """
    session = get_session()
    try:
        return await get_registry().call_tool(name, arguments, session)
    except ValueError as e:
        # Unknown tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Sets up logging for MCP mode (file only, never stdout), builds the
    catalog session via the lifespan manager, and serves JSON-RPC over
    stdio until the client disconnects.

    Args:
        config_overrides: Optional dict with config values to override
            (url, api_key, index, insecure, snapshot_dir, log_file, debug)
    """
    overrides = config_overrides or {}

    # Must run before stdio_server so nothing reaches stdout.
    setup_logging(
        mode="mcp",
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file"),
    )

    registry = ToolRegistry(ALL_SPECS)
    logger.info("Registered %d tools", registry.tool_count())
    set_registry(registry)

    # set_session() is called here rather than inside the lifespan so that
    # running this file as __main__ updates the module actually serving.
    async with server_lifespan(config_overrides=config_overrides) as ctx:
        set_session(ctx["session"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="resource-hub",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_session(None)
            set_registry(None)


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Resource Hub - MCP server for a Meilisearch-backed resource catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or .resource_hub/config.yml)
  resource-hub

  # Point at a specific Meilisearch instance and index
  resource-hub --url http://localhost:7700 --index resources

  # Keep a local snapshot of the catalog between runs
  resource-hub --snapshot-dir ~/.local/share/resource_hub

  # Custom log file location
  resource-hub --log-file /var/log/resource-hub.log

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )

    parser.add_argument(
        "--url",
        help="Override Meilisearch URL (takes precedence over MEILI_URL and config files)",
    )
    parser.add_argument(
        "--api-key",
        help="Override Meilisearch API key (visible in process list -- prefer MEILI_API_KEY)",
    )
    parser.add_argument(
        "--index",
        help="Override index uid (default: resources)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--snapshot-dir",
        help="Directory for the local catalog snapshot (default: no snapshot)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        default="/tmp/resource-hub.log",
        help="Log file path (default: /tmp/resource-hub.log)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"resource-hub version {__version__}",
    )

    args = parser.parse_args()

    config_overrides = {}
    if args.url:
        config_overrides["url"] = args.url
    if args.api_key:
        config_overrides["api_key"] = args.api_key
    if args.index:
        config_overrides["index"] = args.index
    if args.insecure:
        config_overrides["insecure"] = True
    if args.snapshot_dir:
        config_overrides["snapshot_dir"] = args.snapshot_dir
    if args.debug:
        config_overrides["debug"] = True
    if args.log_file:
        config_overrides["log_file"] = args.log_file

    if config_overrides:
        override_keys = [k for k in config_overrides if k != "api_key"]
        print(
            f"Config overrides from CLI: {', '.join(override_keys)}",
            file=sys.stderr,
        )

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
