"""Config loading. JSON files are accepted too (JSON is valid YAML)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from syncbot.config.schema import Config
from syncbot.core.errors import BridgeConfigurationError

# Env var -> nested config key
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SYNCBOT_DISCORD_TOKEN": ("discord", "bot_token"),
    "SYNCBOT_GROUPME_BOT_ID": ("groupme", "bot_id"),
}


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


def _env_overlay() -> dict[str, Any]:
    """Build a nested dict from the secret-bearing env vars that are set."""
    overlay: dict[str, Any] = {}
    for env_key, (section, key) in _ENV_OVERRIDES.items():
        val = os.environ.get(env_key)
        if val:
            overlay.setdefault(section, {})[key] = val
    return overlay


def load_config(path: str | Path) -> dict[str, Any]:
    """Load config from YAML file. Use SafeLoader. Returns raw dict."""
    path = Path(path)
    if not path.exists():
        logger.warning("Config file not found: {}", path)
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            logger.warning("Config file {} has invalid structure (expected dict)", path)
            return {}
        return data
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", path, exc)
        raise


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Load config from YAML and overlay env-derived values (tokens)."""
    from dotenv import load_dotenv

    load_dotenv()
    return _deep_update(load_config(path), _env_overlay())


def load_snapshot(path: str | Path) -> Config:
    """Load, overlay and validate a config file into a new Config snapshot.

    Raises BridgeConfigurationError for a missing, unreadable, unparsable or
    invalid file; the caller's live config is never touched.
    """
    path = Path(path)
    if not path.exists():
        raise BridgeConfigurationError(
            f"config file not found: {path}",
            code="config_not_found",
            details={"path": str(path)},
        )
    try:
        data = load_config_with_env(path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise BridgeConfigurationError(
            str(exc),
            code="config_unreadable",
            details={"path": str(path)},
            original_error=exc,
        ) from exc
    config = Config(data, filename=str(path))
    config.validate()
    return config
