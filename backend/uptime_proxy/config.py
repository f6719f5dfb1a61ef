"""Configuration read from environment variables once at startup."""

from __future__ import annotations

from dataclasses import dataclass, field

from uptime_proxy.env_utils import env_bool, env_csv, env_float, get_env

DEFAULT_API_URL = "https://api.uptimerobot.com/v2/getMonitors"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    cache_path: str = "/data/uptime_cache.json"
    cache_ttl_seconds: float = 300.0
    stale_threshold_seconds: float = 600.0
    # Raw proxy variant forwards client bodies and keeps tight timeouts.
    proxy_connect_timeout_seconds: float = 3.0
    proxy_timeout_seconds: float = 5.0
    fetch_connect_timeout_seconds: float = 5.0
    fetch_timeout_seconds: float = 10.0
    upstream_verify_ssl: bool = True
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def log_level_name(value: str) -> str:
    level = value.upper()
    return level if level in LOG_LEVELS else "INFO"


def load_settings() -> Settings:
    return Settings(
        api_key=get_env("UPTIMEROBOT_API_KEY"),
        api_url=get_env("UPTIMEROBOT_API_URL", DEFAULT_API_URL),
        cache_path=get_env("CACHE_PATH", "/data/uptime_cache.json"),
        cache_ttl_seconds=env_float("CACHE_TTL_SECONDS", 300.0),
        stale_threshold_seconds=env_float("STALE_THRESHOLD_SECONDS", 600.0),
        proxy_connect_timeout_seconds=env_float("PROXY_CONNECT_TIMEOUT_SECONDS", 3.0),
        proxy_timeout_seconds=env_float("PROXY_TIMEOUT_SECONDS", 5.0),
        fetch_connect_timeout_seconds=env_float("FETCH_CONNECT_TIMEOUT_SECONDS", 5.0),
        fetch_timeout_seconds=env_float("FETCH_TIMEOUT_SECONDS", 10.0),
        upstream_verify_ssl=env_bool("UPSTREAM_VERIFY_SSL", True),
        cors_origins=env_csv("CORS_ORIGINS", ["*"]),
        log_level=log_level_name(get_env("LOG_LEVEL", "INFO")),
    )
