"""Application configuration via environment variables.

Uses pydantic-settings to load from .env file and environment variables.
Strategy parameters (capital, fees, thresholds) live in the JSON setting
file instead; see price_action.backtesting.config.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ─── App ───
    log_level: str = "INFO"

    # ─── Bar Store ───
    # Unset means data/{symbol}.json
    klines_path: str | None = None
    symbol: str = "BTCUSDT_15m"

    # ─── Strategy ───
    config_path: str = "config.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton.

    Uses lru_cache so Settings is only instantiated once.
    In tests, call `get_settings.cache_clear()` to reset.
    """
    return Settings()
