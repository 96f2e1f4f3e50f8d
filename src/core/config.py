from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Ignore unrelated env keys so local/dev .env can be shared with the CRM app.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "CRM Reporting Engine"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    reporting_timezone: str = Field(default="Europe/London", alias="REPORTING_TIMEZONE")
    kpi_default_window: str = Field(default="this_week", alias="KPI_DEFAULT_WINDOW")
    trend_quarters: int = Field(default=2, ge=1, le=8, alias="TREND_QUARTERS")
    trend_weeks: int = Field(default=4, ge=1, le=26, alias="TREND_WEEKS")
    trend_months: int = Field(default=4, ge=1, le=24, alias="TREND_MONTHS")
    weekly_call_target: int = Field(default=40, ge=1, alias="WEEKLY_CALL_TARGET")
    monthly_agreement_target: int = Field(default=20, ge=1, alias="MONTHLY_AGREEMENT_TARGET")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
