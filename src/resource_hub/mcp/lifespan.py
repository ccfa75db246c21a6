"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..catalog.gateway import RemoteIndexGateway
from ..catalog.session import CatalogSession
from ..catalog.snapshot import SnapshotStore
from ..config import load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config, to_fallbacks
from ..core.async_utils import init_semaphore
from ..core.client import MeiliClient

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config file if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Create the Meilisearch client, gateway and catalog session
    - Check index health (a failure only warns; the catalog works offline)

    On shutdown:
    - Wait for outstanding index calls and close the catalog session

    Args:
        config_overrides: Optional dict with config values from CLI
            (url, api_key, index, insecure, snapshot_dir)

    Yields:
        Dict with 'session' key containing the CatalogSession

    Raises:
        RuntimeError: If configuration is invalid.
    """
    logger.info("MCP server starting...")
    _stderr_print("Resource Hub MCP Server starting...")

    try:
        # .env first so ${VAR} interpolation in YAML can use its values
        load_dotenv()

        yaml_fallbacks: dict[str, Any] | None = None
        config_files = discover_config_files()
        sources = []

        if config_files:
            config_path = config_files[0]
            raw = load_hierarchical_config()
            yaml_fallbacks = to_fallbacks(build_config(raw))
            sources.append(f"config file: {config_path}")

        overrides = config_overrides or {}
        config = load_config(
            url=overrides.get("url"),
            api_key=overrides.get("api_key"),
            index_uid=overrides.get("index"),
            insecure=overrides.get("insecure", False),
            debug=overrides.get("debug", False),
            snapshot_dir=overrides.get("snapshot_dir"),
            yaml_fallbacks=yaml_fallbacks,
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        logger.info("Meilisearch URL: %s (index %s)", config.meili_url, config.index_uid)
        _stderr_print(f"  Meilisearch URL: {config.meili_url} (index {config.index_uid})")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print("  Ensure MEILI_URL and MEILI_API_KEY are set.")
        raise RuntimeError(
            f"Configuration error: {e}. Ensure MEILI_URL and MEILI_API_KEY are set."
        ) from e

    init_semaphore(config.max_parallel_requests)
    _stderr_print(f"  Parallel requests: {config.max_parallel_requests}")

    gateway = RemoteIndexGateway(MeiliClient(config))
    snapshot = None
    if config.snapshot_dir:
        snapshot = SnapshotStore(Path(config.snapshot_dir), config.storage_name)
        _stderr_print(f"  Snapshot file: {snapshot.path}")
    session = CatalogSession(config, gateway, snapshot)

    if await gateway.health():
        _stderr_print("  Meilisearch is available")
    else:
        # Local edits keep working; they sync once the index is back.
        logger.warning("Meilisearch at %s is not available", config.meili_url)
        _stderr_print("WARNING: Meilisearch is not reachable; continuing offline.")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield {"session": session}
    finally:
        logger.info("MCP server shutting down")
        await session.close()
        _stderr_print("Resource Hub MCP Server shutting down.")
