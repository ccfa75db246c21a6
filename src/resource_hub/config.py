"""Runtime configuration for the resource hub.

Reads Meilisearch connection settings, login credentials and catalog
tuning from CLI args, environment variables, .env files, and YAML config
file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    MEILI_URL: Meilisearch base URL (required)
    MEILI_API_KEY: Bearer credential for Meilisearch (required)
    MEILI_INDEX: Index uid (optional, default: resources)
    MEILI_INSECURE: Skip SSL verification (optional, default: false)
    LOGIN_USER / LOGIN_PASS: Credentials gating the catalog (default: admin/admin)
    HUB_DEBUG: Enable debug logging (optional, default: false)
    HUB_FETCH_LIMIT: Documents pulled by a full reload (default: 1000)
    HUB_SEARCH_LIMIT: Hits requested per search (default: 200)
    HUB_DEBOUNCE_MS: Quiet period before a search fires (default: 300)
    HUB_MAX_PARALLEL_REQUESTS: Max concurrent index requests (default: 5)
    HUB_SNAPSHOT_DIR: Directory for the local catalog snapshot (optional)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_INDEX_UID = "resources"
DEFAULT_STORAGE_NAME = "resource_warehouse"

# (env var, config field, minimum, maximum, default)
_INT_SETTINGS: tuple[tuple[str, str, int, int, int], ...] = (
    ("HUB_FETCH_LIMIT", "fetch_limit", 1, 10000, 1000),
    ("HUB_SEARCH_LIMIT", "search_limit", 1, 1000, 200),
    ("HUB_DEBOUNCE_MS", "debounce_ms", 0, 5000, 300),
    ("HUB_MAX_PARALLEL_REQUESTS", "max_parallel_requests", 1, 100, 5),
)


@dataclass
class Config:
    meili_url: str
    api_key: str
    index_uid: str = DEFAULT_INDEX_UID
    login_user: str = "admin"
    login_password: str = "admin"
    insecure: bool = False
    debug: bool = False
    fetch_limit: int = 1000
    search_limit: int = 200
    debounce_ms: int = 300
    max_parallel_requests: int = 5
    snapshot_dir: str | None = None
    storage_name: str = DEFAULT_STORAGE_NAME

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If URL format is invalid, the API key or index uid is
            empty, or a numeric setting is out of range.
    """
    config.meili_url = config.meili_url.strip()

    if not config.meili_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid Meilisearch URL '{config.meili_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.meili_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid Meilisearch URL '{config.meili_url}': URL must include a hostname"
        )

    config.meili_url = config.meili_url.removesuffix("/")

    if not config.api_key.strip():
        raise ValueError(
            "Meilisearch API key cannot be empty. Set MEILI_API_KEY environment variable."
        )

    if not config.index_uid.strip():
        raise ValueError("Index uid cannot be empty. Set MEILI_INDEX.")

    if not config.login_user.strip() or not config.login_password:
        raise ValueError(
            "Login credentials cannot be empty. Set LOGIN_USER and LOGIN_PASS."
        )

    for env_key, field_name, low, high, _ in _INT_SETTINGS:
        value = getattr(config, field_name)
        if not (low <= value <= high):
            raise ValueError(
                f"Invalid {field_name} {value}: must be a number between {low} and {high} ({env_key})"
            )

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _resolve_bool(flag: bool, env_key: str, fallback: object) -> bool:
    if flag:
        return True
    env_val = _get_bool_env(env_key)
    if env_val is not None:
        return env_val
    return bool(fallback)


def _resolve_int(
    env_key: str, low: int, high: int, fallback: object, default: int
) -> int:
    raw = os.getenv(env_key)
    if raw is None:
        return int(fallback) if fallback is not None else default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {env_key} '{raw}': must be a number between {low} and {high}"
        ) from None
    if not (low <= value <= high):
        raise ValueError(
            f"Invalid {env_key} '{raw}': must be a number between {low} and {high}"
        )
    return value


def load_config(
    url: str | None = None,
    api_key: str | None = None,
    index_uid: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    snapshot_dir: str | None = None,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override Meilisearch URL.
        api_key: Override the bearer credential.
        index_uid: Override the index uid.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        snapshot_dir: Override the snapshot directory.
        yaml_fallbacks: Flat dict of values from the YAML config file
            (see ``config_schema.to_fallbacks``).

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config (URL, API key) is missing after
            checking all sources, or a value is invalid.
    """
    fb = yaml_fallbacks or {}

    meili_url = url or os.getenv("MEILI_URL") or fb.get("url")
    if not meili_url:
        raise ValueError(
            "Meilisearch URL not found. Set MEILI_URL environment variable, "
            "pass --url CLI argument, or add 'url' to config.yml."
        )

    meili_key = api_key or os.getenv("MEILI_API_KEY") or fb.get("api_key")
    if not meili_key:
        raise ValueError(
            "Meilisearch API key not found. Set MEILI_API_KEY environment variable, "
            "pass --api-key CLI argument, or add 'api_key' to config.yml."
        )

    final_index = (
        index_uid
        or os.getenv("MEILI_INDEX")
        or fb.get("index")
        or DEFAULT_INDEX_UID
    )
    login_user = os.getenv("LOGIN_USER") or fb.get("username") or "admin"
    login_password = os.getenv("LOGIN_PASS") or fb.get("password") or "admin"
    final_snapshot_dir = (
        snapshot_dir or os.getenv("HUB_SNAPSHOT_DIR") or fb.get("snapshot_dir")
    )

    numeric = {
        field_name: _resolve_int(
            env_key, low, high, fb.get(field_name), default
        )
        for env_key, field_name, low, high, default in _INT_SETTINGS
    }

    config = Config(
        meili_url=meili_url.strip(),
        api_key=meili_key.strip(),
        index_uid=final_index.strip(),
        login_user=login_user.strip(),
        login_password=login_password,
        insecure=_resolve_bool(
            insecure, "MEILI_INSECURE", fb.get("insecure", False)
        ),
        debug=_resolve_bool(debug, "HUB_DEBUG", fb.get("debug", False)),
        snapshot_dir=final_snapshot_dir,
        storage_name=fb.get("storage_name") or DEFAULT_STORAGE_NAME,
        **numeric,
    )

    validate_config(config)

    return config
