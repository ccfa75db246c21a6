"""Error response builders and shared argument helpers for MCP tool handlers.

Structured error responses carry a corrective action so an agent can
recover without human intervention.
"""

from typing import Any

import mcp.types as types


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_authenticated, not_found,
            validation_error, unknown_tool, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_found", "Resource abc not found", "Use resource_search to list resources.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def text_result(
    text: str, structured: dict[str, Any] | None = None
) -> types.CallToolResult:
    """Successful result with text and optional structured JSON."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def require_str(args: dict, key: str) -> str:
    """Return a non-blank string argument.

    Raises:
        ValueError: If the argument is missing or blank.
    """
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{key}' is required")
    return value


def optional_str_list(args: dict, key: str) -> list[str] | None:
    """Return a list-of-strings argument, accepting a comma-separated string."""
    value = args.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return value
    raise ValueError(f"'{key}' must be a list of strings")
