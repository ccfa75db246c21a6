"""Session and system MCP tools.

Tools:
- login: Open the catalog session with the configured credentials.
- logout: Close the session and clear in-memory catalog state.
- catalog_status: Session, index sync and view-state summary.
- catalog_reload: Force a full load of the catalog from the index.
"""

import mcp.types as types

from ...catalog.reporter import format_status
from ...catalog.session import CatalogSession
from .errors import build_error_response, require_str, text_result
from .registry import ToolSpec

SYSTEM_TOOLS = [
    types.Tool(
        name="login",
        description="Log in to the resource catalog. Required before any other catalog tool.",
        inputSchema={
            "type": "object",
            "properties": {
                "username": {"type": "string", "description": "Catalog user name"},
                "password": {"type": "string", "description": "Catalog password"},
            },
            "required": ["username", "password"],
        },
    ),
    types.Tool(
        name="logout",
        description="Log out and clear the in-memory catalog, selection, tag filter and query.",
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name="catalog_status",
        description=(
            "Show session state: record count, selection, active query, tag filter, "
            "sort order, and resources still waiting to reach the search index."
        ),
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name="catalog_reload",
        description=(
            "Reload every resource from the search index. Local changes that are "
            "still being sent are kept."
        ),
        inputSchema={"type": "object", "properties": {}},
    ),
]


async def handle_login(session: CatalogSession, args: dict) -> types.CallToolResult:
    username = require_str(args, "username")
    password = args.get("password") or ""
    if not await session.login(username, password):
        return build_error_response(
            "not_authenticated",
            "Invalid username or password",
            "Check the LOGIN_USER / LOGIN_PASS configured for this server.",
        )
    count = len(session.store)
    return text_result(
        f"Logged in as {username}. {count} resource(s) loaded.",
        {"authenticated": True, "records": count},
    )


async def handle_logout(session: CatalogSession, args: dict) -> types.CallToolResult:
    session.logout()
    return text_result("Logged out.", {"authenticated": False})


async def handle_status(session: CatalogSession, args: dict) -> types.CallToolResult:
    status = session.status()
    if not status["authenticated"]:
        return text_result("Not logged in.", status)
    return text_result(format_status(status), status)


async def handle_reload(session: CatalogSession, args: dict) -> types.CallToolResult:
    count = await session.reload()
    return text_result(f"Catalog reloaded: {count} resource(s).", {"records": count})


SYSTEM_SPECS: list[ToolSpec] = [
    ToolSpec(tool=SYSTEM_TOOLS[0], handler=handle_login, requires_auth=False),
    ToolSpec(tool=SYSTEM_TOOLS[1], handler=handle_logout),
    ToolSpec(tool=SYSTEM_TOOLS[2], handler=handle_status, requires_auth=False),
    ToolSpec(tool=SYSTEM_TOOLS[3], handler=handle_reload),
]
