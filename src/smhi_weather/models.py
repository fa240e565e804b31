"""Typed models for normalized weather records."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinates(BaseModel):
    """Immutable geographic position."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class WeatherSymbol(str, Enum):
    """General weather appearance, SMHI `Wsymb2` codes 1-27."""

    CLEAR_SKY = "clear_sky"
    NEARLY_CLEAR_SKY = "nearly_clear_sky"
    VARIABLE_CLOUDINESS = "variable_cloudiness"
    HALFCLEAR_SKY = "halfclear_sky"
    CLOUDY_SKY = "cloudy_sky"
    OVERCAST = "overcast"
    FOG = "fog"
    LIGHT_RAIN_SHOWERS = "light_rain_showers"
    MODERATE_RAIN_SHOWERS = "moderate_rain_showers"
    HEAVY_RAIN_SHOWERS = "heavy_rain_showers"
    THUNDERSTORM = "thunderstorm"
    LIGHT_SLEET_SHOWERS = "light_sleet_showers"
    MODERATE_SLEET_SHOWERS = "moderate_sleet_showers"
    HEAVY_SLEET_SHOWERS = "heavy_sleet_showers"
    LIGHT_SNOW_SHOWERS = "light_snow_showers"
    MODERATE_SNOW_SHOWERS = "moderate_snow_showers"
    HEAVY_SNOW_SHOWERS = "heavy_snow_showers"
    LIGHT_RAIN = "light_rain"
    MODERATE_RAIN = "moderate_rain"
    HEAVY_RAIN = "heavy_rain"
    THUNDER = "thunder"
    LIGHT_SLEET = "light_sleet"
    MODERATE_SLEET = "moderate_sleet"
    HEAVY_SLEET = "heavy_sleet"
    LIGHT_SNOWFALL = "light_snowfall"
    MODERATE_SNOWFALL = "moderate_snowfall"
    HEAVY_SNOWFALL = "heavy_snowfall"

    @classmethod
    def from_code(cls, code: int) -> WeatherSymbol | None:
        """Return the symbol for a wire code, or None outside 1-27."""
        if 1 <= code <= len(_SYMBOL_ORDER):
            return _SYMBOL_ORDER[code - 1]
        return None


# Declaration order above is the wire order.
_SYMBOL_ORDER: tuple[WeatherSymbol, ...] = tuple(WeatherSymbol)


class PrecipitationCategory(str, Enum):
    """Precipitation type, SMHI `pcat` codes 0-6."""

    NONE = "none"
    SNOW = "snow"
    SNOW_AND_RAIN = "snow_and_rain"
    RAIN = "rain"
    DRIZZLE = "drizzle"
    FREEZING_RAIN = "freezing_rain"
    FREEZING_DRIZZLE = "freezing_drizzle"

    @classmethod
    def from_code(cls, code: int | None) -> PrecipitationCategory:
        """Return the category for a wire code; unknown codes fall back to NONE."""
        if code is None or not 0 <= code < len(_CATEGORY_ORDER):
            return cls.NONE
        return _CATEGORY_ORDER[code]


_CATEGORY_ORDER: tuple[PrecipitationCategory, ...] = tuple(PrecipitationCategory)


class WeatherRecord(BaseModel):
    """Fully populated weather state for one instant at one position."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    timestamp: datetime
    latitude: float
    longitude: float
    is_forecast: bool = True

    air_pressure: float
    air_temperature: float
    air_temperature_feels_like: float
    horizontal_visibility: float

    wind_direction: float
    wind_speed: float
    wind_gust_speed: float

    relative_humidity: int
    thunder_probability: int

    total_cloud_cover: int
    low_level_cloud_cover: int
    medium_level_cloud_cover: int
    high_level_cloud_cover: int

    min_precipitation: float
    max_precipitation: float
    frozen_precipitation_percentage: int

    mean_precipitation_intensity: float
    median_precipitation_intensity: float

    precipitation_category: PrecipitationCategory
    symbol: WeatherSymbol

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)

    @property
    def record_id(self) -> str:
        return f"weather-at-{self.timestamp.isoformat()}"

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)
