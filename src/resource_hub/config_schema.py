"""Configuration schema for resource_hub YAML files.

Defines Pydantic models for the config file structure with dedicated
sections for the Meilisearch connection, catalog behaviour, login
credentials and logging. ``to_fallbacks()`` flattens a validated config
into the keyword fallbacks accepted by ``config.load_config()``.

Usage:
    from resource_hub.config_schema import build_config, to_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class MeiliConfig(BaseModel):
    """Meilisearch connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    url: str | None = Field(default=None, description="Meilisearch URL")
    api_key: str | None = Field(
        default=None, description="Bearer credential"
    )
    index: str | None = Field(default=None, description="Index uid")
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    max_parallel_requests: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum concurrent requests to the index (1-100)",
    )

    model_config = {"frozen": True}


class CatalogConfig(BaseModel):
    """Catalog sync and query tuning."""

    fetch_limit: int = Field(default=1000, ge=1, le=10000)
    search_limit: int = Field(default=200, ge=1, le=1000)
    debounce_ms: int = Field(
        default=300,
        ge=0,
        le=5000,
        description="Quiet period after the last keystroke before searching",
    )
    snapshot_dir: str | None = Field(
        default=None, description="Directory holding the local snapshot"
    )
    storage_name: str = Field(
        default="resource_warehouse",
        description="Snapshot name (file stem)",
    )

    model_config = {"frozen": True}


class AuthConfig(BaseModel):
    """Credentials gating access to the catalog."""

    username: str | None = None
    password: str | None = None

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    meili: MeiliConfig = Field(default_factory=MeiliConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully -- anything absent gets defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_fallbacks(unified: UnifiedConfig) -> dict:
    """Flatten *unified* into ``load_config(yaml_fallbacks=...)`` keys.

    ``None`` values are dropped so they never shadow built-in defaults.
    """
    merged: dict = {}
    merged.update(unified.meili.model_dump())
    merged.update(unified.catalog.model_dump())
    merged.update(unified.auth.model_dump())
    return {k: v for k, v in merged.items() if v is not None}
