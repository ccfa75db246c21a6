"""Catalog write MCP tools.

Tools:
- resource_create: Create a resource (visible immediately, indexed in the background).
- resource_update: Change fields of an existing resource.
- resource_delete: Delete one resource (requires confirm=true).
- resource_select: Add, remove or clear ids in the batch selection.
- resource_batch_delete: Delete every selected resource (requires confirm=true).

Writes are optimistic: the tool returns as soon as the local catalog has
changed. Use catalog_status to see which resources the index has not
accepted yet.
"""

from typing import Any

import mcp.types as types

from ...catalog.models import ResourceDraft, ResourceMetadata
from ...catalog.reporter import format_resource, resource_to_json
from ...catalog.session import CatalogSession
from ...validators import (
    SIZE_UNITS,
    format_validation_error,
    to_megabytes,
    validate_rating,
    validate_resource_name,
)
from .errors import build_error_response, optional_str_list, require_str, text_result
from .registry import ToolSpec

_METADATA_PROPERTIES: dict[str, Any] = {
    "description": {"type": "string", "description": "Free-text description"},
    "source": {"type": "string", "description": "Where the resource comes from"},
    "category": {"type": "string", "description": "Category label (default 'General')"},
    "rating": {"type": "integer", "minimum": 1, "maximum": 10},
    "tags": {"type": "array", "items": {"type": "string"}},
    "file_size": {"type": "number", "minimum": 0, "description": "Size in file_size_unit"},
    "file_size_unit": {"type": "string", "enum": list(SIZE_UNITS), "default": "MB"},
    "image": {"type": "string", "description": "Image as a data URL; empty string removes it"},
}

CATALOG_WRITE_TOOLS = [
    types.Tool(
        name="resource_create",
        description=(
            "Create a resource. It appears in the catalog at once and is sent "
            "to the search index in the background."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Display name"},
                **_METADATA_PROPERTIES,
            },
        },
    ),
    types.Tool(
        name="resource_update",
        description="Update fields of a resource. Omitted fields keep their value.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Resource id"},
                "name": {"type": "string", "description": "New display name"},
                **_METADATA_PROPERTIES,
            },
            "required": ["id"],
        },
    ),
    types.Tool(
        name="resource_delete",
        description="Delete one resource. Nothing happens unless confirm is true.",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Resource id"},
                "confirm": {"type": "boolean", "default": False},
            },
            "required": ["id", "confirm"],
        },
    ),
    types.Tool(
        name="resource_select",
        description="Change the batch selection used by resource_batch_delete.",
        inputSchema={
            "type": "object",
            "properties": {
                "add": {"type": "array", "items": {"type": "string"}},
                "remove": {"type": "array", "items": {"type": "string"}},
                "clear": {"type": "boolean", "default": False},
            },
        },
    ),
    types.Tool(
        name="resource_batch_delete",
        description=(
            "Delete every selected resource and clear the selection. "
            "Nothing happens unless confirm is true."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "confirm": {"type": "boolean", "default": False},
            },
            "required": ["confirm"],
        },
    ),
]


def _metadata_changes(args: dict) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for key in ("description", "source", "category"):
        if key in args:
            if not isinstance(args[key], str):
                raise ValueError(format_validation_error(key, "must be a string"))
            changes[key] = args[key]

    tags = optional_str_list(args, "tags")
    if tags is not None:
        changes["tags"] = tags

    if "rating" in args:
        is_valid, reason = validate_rating(args["rating"])
        if not is_valid:
            raise ValueError(reason)
        changes["rating"] = args["rating"]

    if "file_size" in args:
        size = args["file_size"]
        if isinstance(size, bool) or not isinstance(size, (int, float)):
            raise ValueError(format_validation_error("File size", "must be a number"))
        changes["file_size"] = to_megabytes(size, args.get("file_size_unit") or "MB")
    return changes


def _draft_from_args(args: dict, base: ResourceMetadata | None) -> ResourceDraft:
    changes = _metadata_changes(args)
    metadata = None
    if changes:
        current = base.model_dump() if base is not None else {}
        metadata = ResourceMetadata.model_validate({**current, **changes})

    name = args.get("name")
    if name is not None and not isinstance(name, str):
        raise ValueError(format_validation_error("Resource name", "must be a string"))
    image = args.get("image")
    if image is not None and not isinstance(image, str):
        raise ValueError(format_validation_error("Image", "must be a string"))
    return ResourceDraft(name=name, image=image, metadata=metadata)


async def handle_create(session: CatalogSession, args: dict) -> types.CallToolResult:
    resource = session.create(_draft_from_args(args, None))
    return text_result(
        f"Created resource {resource.id}.\n\n{format_resource(resource)}",
        resource_to_json(resource),
    )


async def handle_update(session: CatalogSession, args: dict) -> types.CallToolResult:
    resource_id = require_str(args, "id")
    current = session.store.get(resource_id)
    if current is None:
        return build_error_response(
            "not_found",
            f"Resource {resource_id} not found",
            "Use resource_search to list resource ids.",
        )
    if isinstance(args.get("name"), str):
        is_valid, reason = validate_resource_name(args["name"])
        if not is_valid:
            raise ValueError(reason)

    resource = session.edit(resource_id, _draft_from_args(args, current.metadata))
    return text_result(
        f"Updated resource {resource.id}.\n\n{format_resource(resource)}",
        resource_to_json(resource),
    )


async def handle_delete(session: CatalogSession, args: dict) -> types.CallToolResult:
    resource_id = require_str(args, "id")
    if args.get("confirm") is not True:
        return build_error_response(
            "validation_error",
            f"Deletion of {resource_id} was not confirmed",
            "Repeat the call with confirm=true to delete.",
        )
    if not session.delete(resource_id, confirmed=True):
        return build_error_response(
            "not_found",
            f"Resource {resource_id} not found",
            "Use resource_search to list resource ids.",
        )
    return text_result(f"Deleted resource {resource_id}.", {"deleted": [resource_id]})


async def handle_select(session: CatalogSession, args: dict) -> types.CallToolResult:
    if args.get("clear"):
        session.clear_selection()
    to_remove = optional_str_list(args, "remove")
    if to_remove:
        session.deselect(to_remove)
    to_add = optional_str_list(args, "add")
    if to_add:
        session.select(to_add)

    selected = session.selection.ids()
    text = (
        f"{len(selected)} selected: {', '.join(selected)}"
        if selected
        else "Selection is empty."
    )
    return text_result(text, {"selected": selected})


async def handle_batch_delete(
    session: CatalogSession, args: dict
) -> types.CallToolResult:
    if args.get("confirm") is not True:
        return build_error_response(
            "validation_error",
            f"Deletion of {len(session.selection)} selected resource(s) was not confirmed",
            "Repeat the call with confirm=true to delete.",
        )
    deleted = session.delete_selected(confirmed=True)
    if not deleted:
        return text_result("Nothing selected; no resources deleted.", {"deleted": []})
    return text_result(
        f"Deleted {len(deleted)} resource(s): {', '.join(deleted)}",
        {"deleted": deleted},
    )


CATALOG_WRITE_SPECS: list[ToolSpec] = [
    ToolSpec(tool=CATALOG_WRITE_TOOLS[0], handler=handle_create),
    ToolSpec(tool=CATALOG_WRITE_TOOLS[1], handler=handle_update),
    ToolSpec(tool=CATALOG_WRITE_TOOLS[2], handler=handle_delete),
    ToolSpec(tool=CATALOG_WRITE_TOOLS[3], handler=handle_select),
    ToolSpec(tool=CATALOG_WRITE_TOOLS[4], handler=handle_batch_delete),
]
