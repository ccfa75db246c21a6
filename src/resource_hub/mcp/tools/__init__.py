"""MCP tool handlers for catalog operations.

This package contains MCP tool implementations that wrap the
``CatalogSession`` with async handlers, text rendering, and structured
error responses.
"""

from .catalog_read import CATALOG_READ_SPECS, CATALOG_READ_TOOLS
from .catalog_write import CATALOG_WRITE_SPECS, CATALOG_WRITE_TOOLS
from .errors import build_error_response
from .registry import ToolRegistry, ToolSpec
from .system import SYSTEM_SPECS, SYSTEM_TOOLS

ALL_SPECS: list[ToolSpec] = (
    SYSTEM_SPECS + CATALOG_READ_SPECS + CATALOG_WRITE_SPECS
)

__all__ = [
    "build_error_response",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    # Spec lists
    "ALL_SPECS",
    "SYSTEM_SPECS",
    "CATALOG_READ_SPECS",
    "CATALOG_WRITE_SPECS",
    # Tool lists
    "SYSTEM_TOOLS",
    "CATALOG_READ_TOOLS",
    "CATALOG_WRITE_TOOLS",
]
