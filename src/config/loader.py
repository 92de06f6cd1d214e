"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml : Static defaults checked into the repo
#   2. .env file          : Local developer overrides (not committed)
#   3. Environment vars   : Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges values taken
# from Settings on top.  The resolver rule set (gateway signatures,
# deny-list, race width) only exists in YAML; deadlines and TTLs can be
# overridden per environment.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings

_DEFAULT_RESOLVER_RULES: dict = {
    "gateway_signatures": ["trembed", "toonstream.one/home"],
    "deny_list": ["vidstreaming.xyz"],
    "race_concurrency": 5,
    "race_skip_leading": 0,
    "max_candidates": 50,
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings instance to merge; a fresh one is built if omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    base: dict = {"resolver": dict(_DEFAULT_RESOLVER_RULES)}
    _deep_merge(base, yaml_config)

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "upstream": {
            "base_url": settings.upstream_base_url,
            "episode_path": settings.upstream_episode_path,
            "timeout": settings.upstream_timeout,
            "retries": settings.upstream_retries,
        },
        "resolver": {
            "exhaustive_fetch_timeout": settings.exhaustive_fetch_timeout,
            "race_fetch_timeout": settings.race_fetch_timeout,
        },
        "cache": {
            "resolution_ttl": settings.resolution_cache_ttl,
            "default_ttl": settings.cache_default_ttl,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(base, env_overrides)
    return base


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
