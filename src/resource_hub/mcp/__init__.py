"""MCP stdio presentation layer for the resource catalog."""
