"""Catalog output formatting.

Provides human-readable and machine-readable renderings of catalog state:

- ``format_resource_list`` -- one line per resource for tool text output.
- ``format_resource`` -- full detail for a single resource.
- ``format_status`` -- session/sync summary.
- ``resource_to_json`` -- structured dict for MCP structured content.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..validators import split_file_size
from .models import Resource


def _size_label(megabytes: float) -> str:
    value, unit = split_file_size(megabytes)
    return f"{value} {unit}"


def resource_to_json(
    resource: Resource, score: float | None = None
) -> dict[str, Any]:
    """Wire document of *resource* without the image payload."""
    doc = resource.to_document()
    doc.pop("image", None)
    doc["hasImage"] = resource.image is not None
    if score is not None:
        doc["relevanceScore"] = score
    return doc


def format_resource_list(
    resources: Sequence[Resource],
    scores: Mapping[str, float] | None = None,
    selected: Sequence[str] = (),
) -> str:
    """Format the visible list, one resource per line.

    Args:
        resources: Resources in display order.
        scores: Optional relevance score per id, appended when present.
        selected: Ids to flag as selected.
    """
    if not resources:
        return "No resources match the current search and tag filter."

    chosen = set(selected)
    lines = [f"{len(resources)} resource(s):"]
    for r in resources:
        mark = "[x]" if r.id in chosen else "[ ]"
        line = (
            f"{mark} {r.id}  {r.name}  ({r.metadata.category}, "
            f"rating {r.metadata.rating}, {_size_label(r.metadata.file_size)})"
        )
        if r.metadata.tags:
            line += "  " + " ".join(f"#{t}" for t in r.metadata.tags)
        if scores and r.id in scores:
            line += f"  score={scores[r.id]:.3f}"
        lines.append(line)
    return "\n".join(lines)


def format_resource(resource: Resource) -> str:
    """Multi-line detail view of one resource."""
    meta = resource.metadata
    lines = [
        f"{resource.name} ({resource.id})",
        f"  Category:    {meta.category}",
        f"  Rating:      {meta.rating}/10",
        f"  Size:        {_size_label(meta.file_size)}",
        f"  Source:      {meta.source or '-'}",
        f"  Tags:        {', '.join(meta.tags) if meta.tags else '-'}",
        f"  Created:     {resource.created_at.isoformat()}",
        f"  Updated:     {resource.updated_at.isoformat()}",
        f"  Image:       {'yes' if resource.image else 'no'}",
    ]
    if meta.description:
        lines += ["", meta.description]
    return "\n".join(lines)


def format_status(status: Mapping[str, Any]) -> str:
    """Summarize ``CatalogSession.status()``.

    Orphaned ids are listed explicitly as "sync pending" so the user
    knows the index lags behind the local view.
    """
    lines = [
        f"Records:    {status['records']}",
        f"Selected:   {len(status['selected'])}",
        f"Query:      {status['query'] or '(none)'}",
        f"Tags:       {', '.join(status['tags']) or '(none)'}",
        f"Sort:       {status['sort']}",
        f"In flight:  {status['in_flight']}",
    ]
    if status["pending"]:
        lines.append(f"Pending:    {', '.join(status['pending'])}")
    if status["orphaned"]:
        lines.append(
            f"Sync pending (not indexed): {', '.join(status['orphaned'])}"
        )
    return "\n".join(lines)
