"""Application settings loaded from environment variables via pydantic-settings."""

from enum import StrEnum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class LogFormat(StrEnum):
    json = "json"
    console = "console"


class Settings(BaseSettings):
    """Central configuration, sourced from env vars or the .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Observability ───────────────────────────────────────────────────────
    log_level: str = "info"
    log_format: LogFormat = LogFormat.json

    # ── Analytics ───────────────────────────────────────────────────────────
    redis_url: str | None = None
    analytics_cache_ttl_seconds: int = 300

    # ── Recommendations ─────────────────────────────────────────────────────
    default_min_efficacy: float = 90.0
    alternatives_limit: int = 5

    # ── Tank mix ────────────────────────────────────────────────────────────
    high_total_dosage: float = 5.0

    # ── Resistance ──────────────────────────────────────────────────────────
    resistance_lookback_days: int = 90

    # ── Warnings ────────────────────────────────────────────────────────────
    low_stock_threshold: float = 5.0
    expiry_warning_days: int = 30
    high_wind_threshold: float = 7.0
    low_humidity_threshold: float = 35.0
    high_temperature_threshold: float = 30.0

    # ── Treatment planning ──────────────────────────────────────────────────
    plan_interval_days: int = 21
    plan_initial_offset_days: int = 7
    plan_window_days: int = 2
    plan_reminder_window_days: int = 3
    plan_horizon_days: int = 180

    # ── Reference data ──────────────────────────────────────────────────────
    reference_data_path: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance (cached after first call)."""
    return Settings()
