"""Configuration module: exports Settings and load_config."""

from dharmaseed_player.config.loader import load_config
from dharmaseed_player.config.settings import Settings

__all__ = ["Settings", "load_config"]
