"""Tests for tool registration and routing in the MCP server module.

Handler behaviour is covered in tests/test_mcp/tools/ -- this file only
tests the server routing layer and global accessors.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from resource_hub.catalog.session import CatalogSession
from resource_hub.mcp.server import (
    get_registry,
    get_session,
    handle_call_tool,
    handle_list_tools,
    run,
    set_registry,
    set_session,
)
from resource_hub.mcp.tools import ALL_SPECS
from resource_hub.mcp.tools.registry import ToolRegistry


@pytest.fixture
def wired(mock_config, fake_gateway):
    """Install a registry and a fresh session as the server globals."""
    session = CatalogSession(mock_config, fake_gateway)
    set_registry(ToolRegistry(ALL_SPECS))
    set_session(session)
    yield session
    set_registry(None)
    set_session(None)


def test_accessors_raise_when_uninitialized():
    set_session(None)
    set_registry(None)
    with pytest.raises(RuntimeError, match="CatalogSession not initialized"):
        get_session()
    with pytest.raises(RuntimeError, match="ToolRegistry not initialized"):
        get_registry()


def test_list_tools(wired):
    names = [t.name for t in asyncio.run(handle_list_tools())]
    assert names[0] == "login"
    assert "resource_batch_delete" in names


def test_unknown_tool_returns_error(wired):
    result = asyncio.run(handle_call_tool("wiki_get", {}))
    assert result.isError
    assert "Error (unknown_tool)" in result.content[0].text


async def test_call_routes_to_session(wired):
    result = await handle_call_tool(
        "login", {"username": "admin", "password": "admin"}
    )
    assert not result.isError
    assert wired.authenticated
    await wired.close()


class TestRunCli:
    def test_overrides_built_from_args(self):
        argv = [
            "resource-hub",
            "--url",
            "http://search:7700",
            "--index",
            "items",
            "--snapshot-dir",
            "/tmp/snap",
            "--insecure",
        ]
        with (
            patch("sys.argv", argv),
            patch("resource_hub.mcp.server.main", new=MagicMock(return_value=None)) as mock_main,
            patch("resource_hub.mcp.server.asyncio.run") as mock_run,
        ):
            run()

        mock_run.assert_called_once()
        overrides = mock_main.call_args[1]["config_overrides"]
        assert overrides["url"] == "http://search:7700"
        assert overrides["index"] == "items"
        assert overrides["snapshot_dir"] == "/tmp/snap"
        assert overrides["insecure"] is True
        assert overrides["log_file"] == "/tmp/resource-hub.log"

    def test_runtime_error_exits_1(self):
        with (
            patch("sys.argv", ["resource-hub"]),
            patch("resource_hub.mcp.server.main", new=MagicMock(return_value=None)),
            patch(
                "resource_hub.mcp.server.asyncio.run",
                side_effect=RuntimeError("Configuration error"),
            ),
        ):
            with pytest.raises(SystemExit) as exc:
                run()
        assert exc.value.code == 1
