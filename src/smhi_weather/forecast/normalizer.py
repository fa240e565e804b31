"""Forecast time slice to WeatherRecord normalization."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ..exceptions import DecodeError, MissingFieldError
from ..models import Coordinates, PrecipitationCategory, WeatherRecord, WeatherSymbol
from .models import ForecastPayload, ForecastTimeSlice, ParameterName, ParameterTable

# Extraction order; the first absent field is the one reported.
REQUIRED_FIELDS: tuple[tuple[str, ParameterName], ...] = (
    ("air_pressure", ParameterName.AIR_PRESSURE),
    ("air_temperature", ParameterName.AIR_TEMPERATURE),
    ("horizontal_visibility", ParameterName.HORIZONTAL_VISIBILITY),
    ("wind_direction", ParameterName.WIND_DIRECTION),
    ("wind_speed", ParameterName.WIND_SPEED),
    ("wind_gust_speed", ParameterName.WIND_GUST_SPEED),
    ("relative_humidity", ParameterName.RELATIVE_HUMIDITY),
    ("thunder_probability", ParameterName.THUNDER_PROBABILITY),
    ("total_cloud_cover", ParameterName.TOTAL_CLOUD_COVER),
    ("low_level_cloud_cover", ParameterName.LOW_LEVEL_CLOUD_COVER),
    ("medium_level_cloud_cover", ParameterName.MEDIUM_LEVEL_CLOUD_COVER),
    ("high_level_cloud_cover", ParameterName.HIGH_LEVEL_CLOUD_COVER),
    ("min_precipitation", ParameterName.MIN_PRECIPITATION),
    ("max_precipitation", ParameterName.MAX_PRECIPITATION),
    ("frozen_precipitation_percentage", ParameterName.FROZEN_PRECIPITATION_PERCENTAGE),
    ("mean_precipitation_intensity", ParameterName.MEAN_PRECIPITATION_INTENSITY),
    ("median_precipitation_intensity", ParameterName.MEDIAN_PRECIPITATION_INTENSITY),
)


class ForecastNormalizer:
    """Turns forecast parameter tables into fully populated WeatherRecords."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("smhi_weather.forecast")

    def normalize(
        self,
        time_slice: ForecastTimeSlice | ParameterTable,
        coordinates: Coordinates,
        valid_time: datetime | None = None,
    ) -> WeatherRecord:
        """Build one record, raising MissingFieldError for the first absent field.

        A bare ParameterTable carries no time, so `valid_time` is required with
        one; with a ForecastTimeSlice it overrides the slice's own time.
        """
        if isinstance(time_slice, ForecastTimeSlice):
            table = time_slice.table(logger=self.logger)
            timestamp = valid_time or time_slice.valid_time
        else:
            if valid_time is None:
                raise ValueError("valid_time is required when normalizing a bare ParameterTable.")
            table = time_slice
            timestamp = valid_time

        fields: dict[str, Any] = {}
        for field_name, parameter in REQUIRED_FIELDS:
            value = table.value(parameter)
            if value is None:
                raise MissingFieldError(field_name)
            fields[field_name] = value

        symbol_code = table.value(ParameterName.WEATHER_SYMBOL)
        symbol = WeatherSymbol.from_code(symbol_code) if symbol_code is not None else None
        if symbol is None:
            raise MissingFieldError("symbol")

        feels_like = table.feels_like
        if feels_like is None:
            raise MissingFieldError("air_temperature_feels_like")

        category = PrecipitationCategory.from_code(
            table.value(ParameterName.PRECIPITATION_CATEGORY)
        )

        try:
            return WeatherRecord(
                timestamp=timestamp,
                latitude=coordinates.latitude,
                longitude=coordinates.longitude,
                air_temperature_feels_like=feels_like,
                precipitation_category=category,
                symbol=symbol,
                **fields,
            )
        except ValidationError as exc:
            raise DecodeError(f"Forecast slice at {timestamp} has invalid values: {exc}") from exc

    def normalize_all(
        self,
        payload: ForecastPayload,
        coordinates: Coordinates,
        *,
        skip_incomplete: bool = False,
    ) -> list[WeatherRecord]:
        """Normalize every slice of a payload.

        Strict by default: the first incomplete slice fails the batch. With
        `skip_incomplete` such slices are logged and dropped instead.
        """
        records: list[WeatherRecord] = []
        for time_slice in payload.time_series:
            try:
                records.append(self.normalize(time_slice, coordinates))
            except MissingFieldError as exc:
                if not skip_incomplete:
                    raise
                self.logger.warning(
                    "Skipping incomplete forecast slice",
                    extra={"valid_time": time_slice.valid_time.isoformat(), "field": exc.field},
                )
        return records
