"""Tests for resource_hub.mcp.lifespan: server startup/shutdown lifecycle.

Tests the server_lifespan() async context manager which:
- Loads config from env vars, YAML fallbacks and CLI overrides
- Builds the Meilisearch client, gateway, snapshot and catalog session
- Initializes concurrency semaphore
- Fails fast on config errors, only warns when the index is unreachable
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from resource_hub.catalog.session import CatalogSession
from resource_hub.config import Config
from resource_hub.mcp.lifespan import server_lifespan

MODULE = "resource_hub.mcp.lifespan"


def _make_config(**overrides):
    """Create a valid Config for testing."""
    defaults = {
        "meili_url": "http://localhost:7700",
        "api_key": "test-key",
        "max_parallel_requests": 5,
    }
    defaults.update(overrides)
    return Config(**defaults)


def _gateway(healthy=True):
    gateway = MagicMock()
    gateway.health = AsyncMock(return_value=healthy)
    return gateway


def _patches(config, gateway, config_files=()):
    return (
        patch(f"{MODULE}.load_dotenv"),
        patch(f"{MODULE}.discover_config_files", return_value=list(config_files)),
        patch(f"{MODULE}.load_config", return_value=config),
        patch(f"{MODULE}.MeiliClient"),
        patch(f"{MODULE}.RemoteIndexGateway", return_value=gateway),
        patch(f"{MODULE}.init_semaphore"),
        patch(f"{MODULE}._stderr_print"),
    )


class TestServerLifespanSuccess:
    async def test_yields_catalog_session(self):
        config = _make_config()
        gateway = _gateway()
        p = _patches(config, gateway)
        with p[0], p[1], p[2], p[3] as mock_client, p[4], p[5] as mock_sem, p[6]:
            async with server_lifespan() as ctx:
                session = ctx["session"]
                assert isinstance(session, CatalogSession)
                assert session.gateway is gateway
                assert session.snapshot is None
                assert not session.authenticated
                mock_client.assert_called_once_with(config)
                mock_sem.assert_called_once_with(5)
                gateway.health.assert_awaited_once()

    async def test_snapshot_store_created_from_config(self, tmp_path):
        config = _make_config(snapshot_dir=str(tmp_path), storage_name="shelf")
        p = _patches(config, _gateway())
        with p[0], p[1], p[2], p[3], p[4], p[5], p[6]:
            async with server_lifespan() as ctx:
                snapshot = ctx["session"].snapshot
                assert snapshot.path == Path(tmp_path) / "shelf.json"

    async def test_overrides_forwarded(self):
        config = _make_config()
        p = _patches(config, _gateway())
        with p[0], p[1], p[2] as mock_load, p[3], p[4], p[5], p[6]:
            async with server_lifespan(
                config_overrides={
                    "url": "http://search:7700",
                    "api_key": "cli-key",
                    "index": "items",
                    "insecure": True,
                    "snapshot_dir": "/tmp/snap",
                }
            ):
                pass

        kwargs = mock_load.call_args[1]
        assert kwargs["url"] == "http://search:7700"
        assert kwargs["api_key"] == "cli-key"
        assert kwargs["index_uid"] == "items"
        assert kwargs["insecure"] is True
        assert kwargs["snapshot_dir"] == "/tmp/snap"
        assert kwargs["yaml_fallbacks"] is None

    async def test_yaml_fallbacks_passed(self, tmp_path):
        config = _make_config()
        p = _patches(config, _gateway(), config_files=[tmp_path / "config.yml"])
        raw = {"meili": {"url": "http://yaml:7700"}, "auth": {"username": "curator"}}
        with (
            p[0], p[1], p[2] as mock_load, p[3], p[4], p[5], p[6],
            patch(f"{MODULE}.load_hierarchical_config", return_value=raw),
        ):
            async with server_lifespan():
                pass

        fallbacks = mock_load.call_args[1]["yaml_fallbacks"]
        assert fallbacks["url"] == "http://yaml:7700"
        assert fallbacks["username"] == "curator"

    async def test_unhealthy_index_only_warns(self):
        p = _patches(_make_config(), _gateway(healthy=False))
        with p[0], p[1], p[2], p[3], p[4], p[5], p[6] as mock_print:
            async with server_lifespan() as ctx:
                assert ctx["session"] is not None
        printed = " ".join(c.args[0] for c in mock_print.call_args_list)
        assert "continuing offline" in printed

    async def test_shutdown_closes_session(self):
        p = _patches(_make_config(), _gateway())
        with p[0], p[1], p[2], p[3], p[4], p[5], p[6]:
            async with server_lifespan() as ctx:
                session = ctx["session"]
                session.close = AsyncMock()
        session.close.assert_awaited_once()


class TestServerLifespanConfigError:
    async def test_config_error_raises_runtime_error(self):
        with (
            patch(f"{MODULE}.load_dotenv"),
            patch(f"{MODULE}.discover_config_files", return_value=[]),
            patch(
                f"{MODULE}.load_config",
                side_effect=ValueError("Meilisearch URL not found."),
            ),
            patch(f"{MODULE}._stderr_print") as mock_print,
        ):
            with pytest.raises(RuntimeError, match="Meilisearch URL not found"):
                async with server_lifespan():
                    pass

        printed = " ".join(c.args[0] for c in mock_print.call_args_list)
        assert "MEILI_URL" in printed
