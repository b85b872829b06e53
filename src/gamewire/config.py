"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Application configuration. All values sourced from environment variables."""

    # Required
    database_path: str

    # Optional: source credentials (absence disables only the owning adapter)
    igdb_client_id: str | None = None
    igdb_client_secret: str | None = None
    twitch_token_url: str = "https://id.twitch.tv/oauth2/token"
    youtube_api_key: str | None = None
    giantbomb_api_key: str | None = None
    llm_api_key: str | None = None

    # Optional: LLM
    llm_model: str = "claude-sonnet-4-20250514"
    llm_max_retries: int = 3
    llm_timeout_seconds: int = 60
    llm_temperature: float = 0.8

    # Optional: Ingestion
    auto_publish_igdb: bool = False
    sources_config_path: str = "./config/sources.json"
    feed_timeout_seconds: float = 10.0
    http_timeout_seconds: float = 30.0
    steam_request_delay_seconds: float = 1.5
    min_deal_savings: int = 50
    user_agent: str = "Mozilla/5.0 (compatible; GamewireBot/1.0)"
    nintendo_feed_url: str | None = None

    # Optional: Scheduling
    schedule_enabled: bool = True
    schedule_job: str = "fetch-all-gaming-content"
    fetch_interval_minutes: int = 60

    # Optional: Web
    web_host: str = "0.0.0.0"
    web_port: int = 8080
    trigger_rate_limit: int = 1
    trigger_rate_window_seconds: int = 60

    # Optional: Application
    log_level: str = "INFO"
    log_format: str = "json"
    app_env: str = "production"


_REQUIRED_VARS = [
    "DATABASE_PATH",
]


def _get_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_config(env_path: str | Path | None = None) -> Config:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development), then validates
    that all required variables are set. Raises ValueError listing any
    missing variables. Source credentials are optional: an adapter whose
    credentials are absent reports itself unconfigured at run time.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [var for var in _REQUIRED_VARS if not os.environ.get(var)]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return Config(
        # Required
        database_path=os.environ["DATABASE_PATH"],
        # Optional: source credentials
        igdb_client_id=os.environ.get("IGDB_CLIENT_ID") or None,
        igdb_client_secret=os.environ.get("IGDB_CLIENT_SECRET") or None,
        twitch_token_url=os.environ.get(
            "TWITCH_TOKEN_URL", "https://id.twitch.tv/oauth2/token"
        ),
        youtube_api_key=os.environ.get("YOUTUBE_API_KEY") or None,
        giantbomb_api_key=os.environ.get("GIANTBOMB_API_KEY") or None,
        llm_api_key=os.environ.get("LLM_API_KEY") or None,
        # Optional: LLM
        llm_model=os.environ.get("LLM_MODEL", "claude-sonnet-4-20250514"),
        llm_max_retries=int(os.environ.get("LLM_MAX_RETRIES", "3")),
        llm_timeout_seconds=int(os.environ.get("LLM_TIMEOUT_SECONDS", "60")),
        llm_temperature=float(os.environ.get("LLM_TEMPERATURE", "0.8")),
        # Optional: Ingestion
        auto_publish_igdb=_get_bool("AUTO_PUBLISH_IGDB", False),
        sources_config_path=os.environ.get("SOURCES_CONFIG_PATH", "./config/sources.json"),
        feed_timeout_seconds=float(os.environ.get("FEED_TIMEOUT_SECONDS", "10")),
        http_timeout_seconds=float(os.environ.get("HTTP_TIMEOUT_SECONDS", "30")),
        steam_request_delay_seconds=float(
            os.environ.get("STEAM_REQUEST_DELAY_SECONDS", "1.5")
        ),
        min_deal_savings=int(os.environ.get("MIN_DEAL_SAVINGS", "50")),
        user_agent=os.environ.get(
            "USER_AGENT", "Mozilla/5.0 (compatible; GamewireBot/1.0)"
        ),
        nintendo_feed_url=os.environ.get("NINTENDO_FEED_URL") or None,
        # Optional: Scheduling
        schedule_enabled=_get_bool("SCHEDULE_ENABLED", True),
        schedule_job=os.environ.get("SCHEDULE_JOB", "fetch-all-gaming-content"),
        fetch_interval_minutes=int(os.environ.get("FETCH_INTERVAL_MINUTES", "60")),
        # Optional: Web
        web_host=os.environ.get("WEB_HOST", "0.0.0.0"),
        web_port=int(os.environ.get("WEB_PORT", "8080")),
        trigger_rate_limit=int(os.environ.get("TRIGGER_RATE_LIMIT", "1")),
        trigger_rate_window_seconds=int(
            os.environ.get("TRIGGER_RATE_WINDOW_SECONDS", "60")
        ),
        # Optional: Application
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        app_env=os.environ.get("APP_ENV", "production"),
    )
