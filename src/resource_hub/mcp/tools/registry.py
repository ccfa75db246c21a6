"""ToolSpec and ToolRegistry for the catalog MCP tools.

Key concepts:
- ToolSpec: Immutable dataclass linking a Tool definition, whether it needs
  an authenticated session, and an async handler with standardized
  signature (session, args) -> CallToolResult.
- ToolRegistry: Provides list_tools() and call_tool() dispatch. Calls to
  tools that need a login are refused until the session is authenticated,
  and handler exceptions are translated into structured error responses.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import mcp.types as types

from ...catalog.session import CatalogSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable specification for a single MCP tool.

    Attributes:
        tool: The MCP Tool definition (name, description, inputSchema).
        handler: Async handler with signature (session, args) -> CallToolResult.
        requires_auth: False only for tools usable before login.
    """

    tool: types.Tool
    handler: Callable[[CatalogSession, dict], Awaitable[types.CallToolResult]]
    requires_auth: bool = True


class ToolRegistry:
    """Registry of ToolSpecs keyed by tool name."""

    def __init__(self, specs: list[ToolSpec]):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            if spec.tool.name in self._specs:
                raise ValueError(f"Duplicate tool name: {spec.tool.name}")
            self._specs[spec.tool.name] = spec

    def list_tools(self) -> list[types.Tool]:
        """Return list of types.Tool for all registered specs."""
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        """Return number of registered tools."""
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        session: CatalogSession,
    ) -> types.CallToolResult:
        """Dispatch tool call to registered handler.

        Args:
            name: Tool name to invoke.
            arguments: Tool arguments (may be None).
            session: The catalog session the tool operates on.

        Returns:
            CallToolResult from the handler.

        Raises:
            ValueError: If tool name is not registered.
        """
        from .errors import build_error_response

        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        if spec.requires_auth and not session.authenticated:
            return build_error_response(
                "not_authenticated",
                f"Tool '{name}' requires a logged-in session",
                "Call login with the catalog username and password first.",
            )
        args = arguments or {}
        try:
            return await spec.handler(session, args)
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Check parameter values and retry.",
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error",
                str(e),
                "Retry later or check the search index with catalog_status.",
            )
