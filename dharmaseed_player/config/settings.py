"""Application settings loaded from environment variables via pydantic-settings.

Two sources, highest priority first:

  1. Environment variables, e.g. ``UPSTREAM_TIMEOUT=10``
  2. A ``.env`` file in the working directory

Field ``upstream_base_url`` maps to env var ``UPSTREAM_BASE_URL``.  Defaults
below mirror ``config/config.yaml``; see :mod:`dharmaseed_player.config.loader`
for how the two are merged.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Catalog service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Upstream (dharmaseed.org) ===
    upstream_base_url: str = "https://www.dharmaseed.org"
    upstream_feed_base_url: str = "https://dharmaseed.org"  # retreat feeds live on the bare host
    upstream_user_agent: str = "DharmaSeedPlayer/1.0"
    upstream_timeout: float = Field(default=30.0, gt=0)
    upstream_page_items: int = Field(default=25, ge=1)

    # === Caching ===
    cache_ttl_seconds: int = Field(default=24 * 60 * 60, ge=1)

    # === Teacher directory ===
    teacher_batch_size: int = Field(default=500, ge=1)
    teacher_search_limit: int = Field(default=20, ge=1)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    app_env: str = "development"
    log_level: str = "INFO"
    config_path: str = "config/config.yaml"
