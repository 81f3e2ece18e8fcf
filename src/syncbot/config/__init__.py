"""Configuration: YAML/JSON file + env overlay."""

from syncbot.config.loader import _deep_update, load_config, load_config_with_env, load_snapshot
from syncbot.config.schema import Config

__all__ = ["Config", "_deep_update", "load_config", "load_config_with_env", "load_snapshot"]
