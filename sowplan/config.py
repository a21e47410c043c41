"""Application settings loaded from environment variables via pydantic-settings."""

from enum import StrEnum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from sowplan.models.enums import FrostRiskEnum


class LogFormat(StrEnum):
    json = "json"
    console = "console"


class Settings(BaseSettings):
    """Central configuration — all values sourced from env vars or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SOWPLAN_",
        case_sensitive=False,
    )

    # ── Harvest window ──────────────────────────────────────────────────────
    default_harvest_window_days: int = 7
    suggested_harvest_window_days: int = 14

    # ── Gates ───────────────────────────────────────────────────────────────
    default_last_spring_frost_doy: int = 105
    default_spring_frost_risk: FrostRiskEnum = FrostRiskEnum.p50
    soil_gate_consecutive_days: int = 3
    soil_lag_days: int = 10
    soil_offset_c: float = 1.0

    # ── Scan bounds ─────────────────────────────────────────────────────────
    feasibility_scan_max_days: int = 366
    explain_max_days: int = 400

    # ── Observability ───────────────────────────────────────────────────────
    log_level: str = "info"
    log_format: LogFormat = LogFormat.json


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance (cached after first call)."""
    return Settings()
