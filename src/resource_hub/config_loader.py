"""
YAML configuration files for resource_hub.

Up to three files are read, highest precedence first:

1. the file named by ``RESOURCE_HUB_CONFIG``
2. ``.resource_hub/config.yml`` (or ``config.yaml``) in the working directory
3. ``~/.config/resource_hub/config.yml``

Sections (``meili``, ``catalog``, ``auth``, ``logging``) from a
higher-precedence file replace the same section from a lower one as a
whole. String values may reference the environment as ``${VAR}`` or
``${VAR:-default}``; the result is validated by ``config_schema``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RESOURCE_HUB_CONFIG"
PROJECT_CONFIG_DIR = ".resource_hub"
KNOWN_SECTIONS = ("meili", "catalog", "auth", "logging")

_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in *value*.

    An unset or empty variable expands to its default, or ``""``.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m.group(1)) or m.group(2) or "", value
    )


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(val) for val in obj]
    return obj


def _candidate_paths() -> list[Path]:
    candidates = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.append(Path(explicit).expanduser().resolve())
    project_dir = Path.cwd() / PROJECT_CONFIG_DIR
    candidates += [project_dir / "config.yml", project_dir / "config.yaml"]
    candidates.append(Path.home() / ".config" / "resource_hub" / "config.yml")
    return candidates


def discover_config_files() -> list[Path]:
    """Return the config files that exist, highest precedence first."""
    return [path for path in _candidate_paths() if path.exists()]


def _read_sections(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring %s: expected a mapping of sections, got %s",
            path,
            type(data).__name__,
        )
        return {}
    unknown = sorted(set(data) - set(KNOWN_SECTIONS))
    if unknown:
        logger.warning("Unknown section(s) in %s: %s", path, ", ".join(unknown))
    return data


def load_hierarchical_config() -> dict[str, Any]:
    """Merge every discovered config file into one raw dict.

    Returns ``{}`` when no file exists. A file that is not valid YAML
    raises ``yaml.YAMLError``.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Reading config file %s", path)
        merged.update(_read_sections(path))
    return _interpolate_recursive(merged)
