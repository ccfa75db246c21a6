"""Tests for resource_hub.config: env-var config loading and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models). This tests the server
bootstrap path: validate_config() and load_config().
"""

import logging

import pytest

from resource_hub.config import Config, load_config, validate_config

_ENV_KEYS = (
    "MEILI_URL",
    "MEILI_API_KEY",
    "MEILI_INDEX",
    "MEILI_INSECURE",
    "LOGIN_USER",
    "LOGIN_PASS",
    "HUB_DEBUG",
    "HUB_FETCH_LIMIT",
    "HUB_SEARCH_LIMIT",
    "HUB_DEBOUNCE_MS",
    "HUB_MAX_PARALLEL_REQUESTS",
    "HUB_SNAPSHOT_DIR",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    """Tests for validate_config(): URL format and credential checks."""

    def test_valid_config(self):
        validate_config(Config(meili_url="https://search.example.com", api_key="k"))

    def test_trailing_slash_stripped(self):
        config = Config(meili_url="http://localhost:7700/", api_key="k")
        validate_config(config)
        assert config.meili_url == "http://localhost:7700"

    def test_invalid_url_no_scheme(self):
        with pytest.raises(ValueError, match="must start with http:// or https://"):
            validate_config(Config(meili_url="localhost:7700", api_key="k"))

    def test_url_without_hostname(self):
        with pytest.raises(ValueError, match="must include a hostname"):
            validate_config(Config(meili_url="http://", api_key="k"))

    def test_empty_api_key(self):
        with pytest.raises(ValueError, match="API key cannot be empty"):
            validate_config(Config(meili_url="http://localhost:7700", api_key="  "))

    def test_empty_index(self):
        with pytest.raises(ValueError, match="Index uid cannot be empty"):
            validate_config(
                Config(meili_url="http://localhost:7700", api_key="k", index_uid="")
            )

    def test_empty_credentials(self):
        with pytest.raises(ValueError, match="Login credentials"):
            validate_config(
                Config(
                    meili_url="http://localhost:7700",
                    api_key="k",
                    login_password="",
                )
            )

    def test_numeric_range_checked(self):
        with pytest.raises(ValueError, match="fetch_limit"):
            validate_config(
                Config(meili_url="http://localhost:7700", api_key="k", fetch_limit=0)
            )

    def test_insecure_warns(self, caplog):
        config = Config(meili_url="http://localhost:7700", api_key="k", insecure=True)
        with caplog.at_level(logging.WARNING, logger="resource_hub.config"):
            validate_config(config)
        assert "SSL verification disabled" in caplog.text


class TestDebounceSeconds:
    def test_converts_milliseconds(self):
        config = Config(meili_url="http://x", api_key="k", debounce_ms=300)
        assert config.debounce_seconds == pytest.approx(0.3)


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    def test_missing_url_raises(self, clean_env):
        with pytest.raises(ValueError, match="Meilisearch URL not found"):
            load_config(api_key="k")

    def test_missing_key_raises(self, clean_env):
        with pytest.raises(ValueError, match="API key not found"):
            load_config(url="http://localhost:7700")

    def test_defaults(self, clean_env):
        config = load_config(url="http://localhost:7700", api_key="k")
        assert config.index_uid == "resources"
        assert config.login_user == "admin"
        assert config.login_password == "admin"
        assert config.fetch_limit == 1000
        assert config.search_limit == 200
        assert config.debounce_ms == 300
        assert config.max_parallel_requests == 5
        assert config.snapshot_dir is None
        assert config.storage_name == "resource_warehouse"
        assert config.insecure is False

    def test_env_vars_used(self, clean_env):
        clean_env.setenv("MEILI_URL", "http://env:7700")
        clean_env.setenv("MEILI_API_KEY", "env-key")
        clean_env.setenv("MEILI_INDEX", "env_index")
        clean_env.setenv("LOGIN_USER", "curator")
        clean_env.setenv("LOGIN_PASS", "hunter2")
        clean_env.setenv("HUB_DEBOUNCE_MS", "120")
        clean_env.setenv("MEILI_INSECURE", "yes")

        config = load_config()

        assert config.meili_url == "http://env:7700"
        assert config.api_key == "env-key"
        assert config.index_uid == "env_index"
        assert config.login_user == "curator"
        assert config.login_password == "hunter2"
        assert config.debounce_ms == 120
        assert config.insecure is True

    def test_cli_beats_env_beats_yaml(self, clean_env):
        clean_env.setenv("MEILI_URL", "http://env:7700")
        clean_env.setenv("MEILI_INDEX", "env_index")
        fallbacks = {
            "url": "http://yaml:7700",
            "api_key": "yaml-key",
            "index": "yaml_index",
            "username": "yaml_user",
            "search_limit": 50,
        }

        config = load_config(index_uid="cli_index", yaml_fallbacks=fallbacks)

        assert config.meili_url == "http://env:7700"
        assert config.api_key == "yaml-key"
        assert config.index_uid == "cli_index"
        assert config.login_user == "yaml_user"
        assert config.search_limit == 50

    def test_invalid_int_env(self, clean_env):
        clean_env.setenv("HUB_FETCH_LIMIT", "lots")
        with pytest.raises(ValueError, match="HUB_FETCH_LIMIT"):
            load_config(url="http://localhost:7700", api_key="k")

    def test_out_of_range_int_env(self, clean_env):
        clean_env.setenv("HUB_MAX_PARALLEL_REQUESTS", "0")
        with pytest.raises(ValueError, match="between 1 and 100"):
            load_config(url="http://localhost:7700", api_key="k")

    def test_snapshot_dir_precedence(self, clean_env, tmp_path):
        clean_env.setenv("HUB_SNAPSHOT_DIR", str(tmp_path / "env"))
        config = load_config(
            url="http://localhost:7700",
            api_key="k",
            snapshot_dir=str(tmp_path / "cli"),
        )
        assert config.snapshot_dir == str(tmp_path / "cli")

    def test_debug_flag_from_env(self, clean_env):
        clean_env.setenv("HUB_DEBUG", "1")
        config = load_config(url="http://localhost:7700", api_key="k")
        assert config.debug is True
