"""Application configuration and environment helpers."""

from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from premium_desk.screening import ScreeningThresholds

DEFAULT_TASTYTRADE_BASE_URL = "https://api.tastytrade.com"
DEFAULT_SP500_URL = (
    "https://raw.githubusercontent.com/datasets/s-and-p-500-companies/master/data/constituents.csv"
)


class AppSettings(BaseSettings):
    """Configuration options for the Premium Desk service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Premium Desk")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./premium_desk.db",
        description="SQLAlchemy async database URL.",
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = Field(default="INFO", description="Root log level name.")

    tastytrade_base_url: str = Field(default=DEFAULT_TASTYTRADE_BASE_URL)
    tastytrade_account_number: str | None = Field(default=None)
    tastytrade_client_secret: str | None = Field(default=None)
    tastytrade_refresh_token: str | None = Field(default=None)
    tastytrade_session_ttl_seconds: int = Field(default=15 * 60)
    tastytrade_timeout_seconds: float = Field(default=15.0)
    tastytrade_max_retries: int = Field(default=3, ge=1)
    tastytrade_rate_limit_delay_ms: int = Field(default=300, ge=0)
    quote_chunk_size: int = Field(default=50, ge=1)

    min_stock_price: float = Field(default=30.0)
    max_stock_spread: float = Field(default=15.0)
    min_mid_percent: float = Field(default=3.0)
    days_to_expiration: int = Field(default=10)
    scan_delay_ms: int = Field(default=100, ge=0)
    sp500_constituents_url: str = Field(default=DEFAULT_SP500_URL)

    account_history_start: date = Field(default=date(2024, 11, 1))

    openai_api_key: str | None = Field(default=None)
    openai_model: str = Field(default="gpt-4.1-mini")

    telemetry_enabled: bool = Field(default=False)
    telemetry_service_name: str = Field(default="premium-desk")
    telemetry_otlp_endpoint: str | None = Field(default=None)
    telemetry_otlp_insecure: bool = Field(default=True)
    telemetry_sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)

    @property
    def tastytrade_configured(self) -> bool:
        return bool(
            self.tastytrade_account_number
            and self.tastytrade_client_secret
            and self.tastytrade_refresh_token
        )

    def screening_thresholds(self) -> ScreeningThresholds:
        return ScreeningThresholds(
            min_stock_price=self.min_stock_price,
            max_stock_spread=self.max_stock_spread,
            min_mid_percent=self.min_mid_percent,
            days_to_expiration=self.days_to_expiration,
        )

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"tastytrade_client_secret", "tastytrade_refresh_token", "openai_api_key"}
        return {k: ("***" if k in hidden and v else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> AppSettings:
    """Return cached application settings with optional overrides."""

    if overrides:
        return AppSettings(**overrides)
    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_TASTYTRADE_BASE_URL",
    "DEFAULT_SP500_URL",
    "get_settings",
]
