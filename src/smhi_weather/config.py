"""Typed settings loader for the SMHI weather client."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import AnyUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")

    smhi_observations_base_url: AnyUrl = Field(
        default="https://opendata-download-metobs.smhi.se/api/version/1.0",
        alias="SMHI_OBSERVATIONS_BASE_URL",
    )
    smhi_forecast_base_url: AnyUrl = Field(
        default="https://opendata-download-metfcst.smhi.se/api/category/pmp3g/version/2",
        alias="SMHI_FORECAST_BASE_URL",
    )
    smhi_timeout_seconds: float = Field(default=15.0, alias="SMHI_TIMEOUT_SECONDS")
    smhi_user_agent: str = Field(
        default="smhi-weather/0.1 (contact: weather@example.com)",
        alias="SMHI_USER_AGENT",
    )

    weather_default_lat: float | None = Field(default=None, alias="WEATHER_DEFAULT_LAT")
    weather_default_lon: float | None = Field(default=None, alias="WEATHER_DEFAULT_LON")
    weather_max_print: int = Field(default=5, alias="WEATHER_MAX_PRINT")
    weather_fetch_automatically: bool = Field(default=True, alias="WEATHER_FETCH_AUTOMATICALLY")
    weather_staleness_enabled: bool = Field(default=True, alias="WEATHER_STALENESS_ENABLED")
    weather_staleness_max_age_seconds: float = Field(
        default=1800.0,
        alias="WEATHER_STALENESS_MAX_AGE_SECONDS",
    )
    forecast_skip_incomplete_slices: bool = Field(
        default=False,
        alias="FORECAST_SKIP_INCOMPLETE_SLICES",
    )

    observations_default_parameter: str = Field(
        default="1",
        alias="OBSERVATIONS_DEFAULT_PARAMETER",
    )
    observations_default_period: str = Field(
        default="latest-hour",
        alias="OBSERVATIONS_DEFAULT_PERIOD",
    )

    journal_dir: Path = Field(default=Path("./data/journal"), alias="JOURNAL_DIR")
    raw_payload_dir: Path = Field(default=Path("./data/raw"), alias="RAW_PAYLOAD_DIR")
    weather_journal_raw_payloads: bool = Field(default=True, alias="WEATHER_JOURNAL_RAW_PAYLOADS")

    @field_validator("weather_default_lat", "weather_default_lon", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset optional coordinates."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_values(self) -> Settings:
        """Validate numeric ranges and paired settings."""
        if self.smhi_timeout_seconds <= 0:
            raise ValueError("SMHI_TIMEOUT_SECONDS must be > 0.")
        if not self.smhi_user_agent.strip():
            raise ValueError("SMHI_USER_AGENT must not be empty.")
        if self.weather_max_print <= 0:
            raise ValueError("WEATHER_MAX_PRINT must be > 0.")
        if self.weather_staleness_max_age_seconds <= 0:
            raise ValueError("WEATHER_STALENESS_MAX_AGE_SECONDS must be > 0.")
        if not self.observations_default_parameter.strip():
            raise ValueError("OBSERVATIONS_DEFAULT_PARAMETER must not be empty.")
        if not self.observations_default_period.strip():
            raise ValueError("OBSERVATIONS_DEFAULT_PERIOD must not be empty.")

        has_default_lat = self.weather_default_lat is not None
        has_default_lon = self.weather_default_lon is not None
        if has_default_lat != has_default_lon:
            raise ValueError("WEATHER_DEFAULT_LAT and WEATHER_DEFAULT_LON must be set together.")
        if has_default_lat and not (-90 <= self.weather_default_lat <= 90):
            raise ValueError("WEATHER_DEFAULT_LAT must be between -90 and 90.")
        if has_default_lon and not (-180 <= self.weather_default_lon <= 180):
            raise ValueError("WEATHER_DEFAULT_LON must be between -180 and 180.")
        return self

    @property
    def observations_base_url(self) -> str:
        return str(self.smhi_observations_base_url).rstrip("/")

    @property
    def forecast_base_url(self) -> str:
        return str(self.smhi_forecast_base_url).rstrip("/")

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for journaling."""
        return {
            "app_env": self.app_env,
            "observations_base_url": self.observations_base_url,
            "forecast_base_url": self.forecast_base_url,
            "timeout_seconds": self.smhi_timeout_seconds,
            "fetch_automatically": self.weather_fetch_automatically,
            "staleness_enabled": self.weather_staleness_enabled,
            "staleness_max_age_seconds": self.weather_staleness_max_age_seconds,
            "forecast_skip_incomplete_slices": self.forecast_skip_incomplete_slices,
            "raw_journaling": self.weather_journal_raw_payloads,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc

    settings.journal_dir.mkdir(parents=True, exist_ok=True)
    settings.raw_payload_dir.mkdir(parents=True, exist_ok=True)
    return settings
