"""Layered configuration: YAML < .env < CLI args."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
import os

DEFAULT_API_URL = "http://localhost:3000/api"
DEFAULT_CACHE_DIR = "./.facsched_cache"
DEFAULT_TTL_MINUTES = 15

# Environment variable -> nested config path
ENV_MAPPINGS: dict[str, tuple[str, ...]] = {
    "FACSCHED_API_URL": ("api", "base_url"),
    "FACSCHED_CACHE_DIR": ("cache", "dir"),
    "FACSCHED_FALLBACK_DATASET": ("fallback", "dataset"),
    "FACSCHED_LOG_LEVEL": ("logging", "level"),
}


def load_config(
    config_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load configuration with layered precedence.

    Priority (highest to lowest):
    1. CLI argument overrides
    2. Environment variables (.env)
    3. YAML config file

    Args:
        config_path: Path to YAML config file. Defaults to config/default.yaml
        cli_overrides: Dict of overrides keyed by dotted path
            (e.g. {"cache.ttl_minutes": 5}). ``None`` values are ignored.

    Returns:
        Merged configuration dict.
    """
    if config_path is None:
        config_path = Path("config/default.yaml")

    config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

    load_dotenv()
    for env_var, config_path_tuple in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value:
            _set_nested(config, config_path_tuple, value)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                _set_nested(config, tuple(key.split(".")), value)

    return config


def _set_nested(d: dict, keys: tuple[str, ...], value: Any) -> None:
    """Set a value in a nested dict using a tuple of keys."""
    for key in keys[:-1]:
        d = d.setdefault(key, {})
    d[keys[-1]] = value


def get_setting(config: dict[str, Any], dotted: str, default: Any = None) -> Any:
    """Read ``"a.b.c"`` from a nested config dict, or *default*."""
    node: Any = config
    for part in dotted.split("."):
        if not isinstance(node, dict) or node.get(part) is None:
            return default
        node = node[part]
    return node
