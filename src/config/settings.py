"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from TWO sources (in priority order):
#
#   1. **Environment variables**: e.g., UPSTREAM_BASE_URL=https://mirror.example
#   2. **.env file**: key=value lines in the project root .env file
#
# Field ``race_fetch_timeout`` maps to env var ``RACE_FETCH_TIMEOUT``.
# Defaults apply when neither source sets a value.
#
# Resolver *rules* (gateway signatures, deny-list, concurrency caps) live in
# config/config.yaml; see src/config/loader.py.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Source resolver settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Upstream site ===
    upstream_base_url: str = "https://toonstream.one"
    # Path template for the episode page; {identifier} is substituted.
    upstream_episode_path: str = "/episode/{identifier}/"
    upstream_timeout: float = Field(default=10.0, gt=0)
    upstream_retries: int = Field(default=3, ge=1)
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

    # === Secondary fetch deadlines (seconds) ===
    exhaustive_fetch_timeout: float = Field(default=5.0, gt=0)
    race_fetch_timeout: float = Field(default=4.0, gt=0)

    # === Cache ===
    resolution_cache_ttl: int = Field(default=1800, gt=0)  # 30 minutes
    cache_default_ttl: int = Field(default=3600, gt=0)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def episode_url(self, identifier: str) -> str:
        """Return the absolute upstream episode page URL for *identifier*."""
        path = self.upstream_episode_path.format(identifier=identifier)
        return f"{self.upstream_base_url.rstrip('/')}{path}"
