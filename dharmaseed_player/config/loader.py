"""YAML configuration loader with environment variable overrides.

Layers, later wins:

  1. Built-in defaults (the ``Settings`` field defaults)
  2. ``config/config.yaml`` checked into the repo
  3. ``.env`` file and environment variables

Only settings that were actually supplied by the environment override the
YAML file, so a value edited in ``config.yaml`` is not silently replaced by
the corresponding ``Settings`` default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from dharmaseed_player.config.settings import Settings
from dharmaseed_player.utils.errors import ConfigurationError

# Settings field -> (section, key) in the nested config dict.
_SETTINGS_LAYOUT: dict[str, tuple[str, str]] = {
    "app_host": ("app", "host"),
    "app_port": ("app", "port"),
    "app_env": ("app", "env"),
    "log_level": ("logging", "level"),
    "upstream_base_url": ("upstream", "base_url"),
    "upstream_feed_base_url": ("upstream", "feed_base_url"),
    "upstream_user_agent": ("upstream", "user_agent"),
    "upstream_timeout": ("upstream", "timeout"),
    "upstream_page_items": ("upstream", "page_items"),
    "cache_ttl_seconds": ("cache", "ttl_seconds"),
    "teacher_batch_size": ("teachers", "batch_size"),
    "teacher_search_limit": ("teachers", "search_limit"),
}


def _nest(settings: Settings, fields: set[str] | None = None) -> dict[str, dict[str, Any]]:
    nested: dict[str, dict[str, Any]] = {}
    for field_name, (section, key) in _SETTINGS_LAYOUT.items():
        if fields is not None and field_name not in fields:
            continue
        nested.setdefault(section, {})[key] = getattr(settings, field_name)
    return nested


def load_config(path: str | None = None, settings: Settings | None = None) -> dict[str, Any]:
    """Return the fully resolved configuration dictionary.

    Args:
        path: YAML file to read; defaults to ``settings.config_path``.
        settings: Pre-built settings; a fresh ``Settings()`` when omitted.

    Raises:
        ConfigurationError: If the YAML file does not contain a mapping.
    """
    settings = settings or Settings()
    config_path = Path(path or settings.config_path)

    yaml_config: Any = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    if not isinstance(yaml_config, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

    config = _nest(settings)
    _deep_merge(config, yaml_config)
    _deep_merge(config, _nest(settings, fields=settings.model_fields_set))
    return config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
