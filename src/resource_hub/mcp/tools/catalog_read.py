"""Read-only catalog MCP tools.

Tools:
- resource_search: Set the query, tag filter and sort order, return the view.
- resource_get: Full detail of one resource.
- resource_tags: Every tag present in the catalog.
"""

import mcp.types as types

from ...catalog.models import SortKey
from ...catalog.reporter import (
    format_resource,
    format_resource_list,
    resource_to_json,
)
from ...catalog.session import CatalogSession
from .errors import build_error_response, optional_str_list, require_str, text_result
from .registry import ToolSpec

CATALOG_READ_TOOLS = [
    types.Tool(
        name="resource_search",
        description=(
            "List resources. 'query' runs a full-text search on the index "
            "(empty string returns the whole catalog); 'tags' keeps resources "
            "carrying every listed tag; 'sort' orders the list descending. "
            "Omitted arguments keep their previous value."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Full-text query; empty string clears the search",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Tags that must all be present; [] clears the filter",
                },
                "sort": {
                    "type": "string",
                    "enum": [k.value for k in SortKey],
                    "description": "Sort key; 'relevance' needs an active query",
                },
            },
        },
    ),
    types.Tool(
        name="resource_get",
        description="Show every field of one resource.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Resource id"},
            },
            "required": ["id"],
        },
    ),
    types.Tool(
        name="resource_tags",
        description="List every tag used in the catalog, for building a tag filter.",
        inputSchema={"type": "object", "properties": {}},
    ),
]


async def handle_search(session: CatalogSession, args: dict) -> types.CallToolResult:
    query = args.get("query")
    if query is not None:
        if not isinstance(query, str):
            raise ValueError("'query' must be a string")
        await session.search(query)

    tags = optional_str_list(args, "tags")
    if tags is not None:
        session.set_tags(tags)

    sort = args.get("sort")
    if sort is not None:
        try:
            key = SortKey(sort)
        except ValueError:
            raise ValueError(
                f"Unknown sort '{sort}'. Use one of: "
                + ", ".join(k.value for k in session.sort_options())
            ) from None
        if key not in session.sort_options():
            raise ValueError("Sorting by relevance requires an active query")
        session.set_sort(key)

    view = session.view()
    scores = session.query.scores()
    selected = session.selection.ids()
    text = format_resource_list(view, scores, selected)
    return text_result(
        text,
        {
            "query": session.query.query,
            "tags": list(session.selected_tags),
            "sort": session.sort_key.value,
            "resources": [resource_to_json(r, scores.get(r.id)) for r in view],
            "selected": selected,
        },
    )


async def handle_get(session: CatalogSession, args: dict) -> types.CallToolResult:
    resource_id = require_str(args, "id")
    resource = session.store.get(resource_id)
    if resource is None:
        return build_error_response(
            "not_found",
            f"Resource {resource_id} not found",
            "Use resource_search to list resource ids.",
        )
    return text_result(format_resource(resource), resource_to_json(resource))


async def handle_tags(session: CatalogSession, args: dict) -> types.CallToolResult:
    tags = session.available_tags()
    text = ", ".join(tags) if tags else "No tags in the catalog."
    return text_result(text, {"tags": tags})


CATALOG_READ_SPECS: list[ToolSpec] = [
    ToolSpec(tool=CATALOG_READ_TOOLS[0], handler=handle_search),
    ToolSpec(tool=CATALOG_READ_TOOLS[1], handler=handle_get),
    ToolSpec(tool=CATALOG_READ_TOOLS[2], handler=handle_tags),
]
