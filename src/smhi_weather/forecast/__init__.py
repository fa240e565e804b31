"""SMHI point forecast retrieval and normalization."""

from .models import (
    ForecastParameter,
    ForecastPayload,
    ForecastTimeSlice,
    ParameterName,
    ParameterTable,
    unit_suffix,
)
from .normalizer import ForecastNormalizer
from .service import ForecastFetchResult, SMHIForecastService, WeatherService

__all__ = [
    "ForecastFetchResult",
    "ForecastNormalizer",
    "ForecastParameter",
    "ForecastPayload",
    "ForecastTimeSlice",
    "ParameterName",
    "ParameterTable",
    "SMHIForecastService",
    "WeatherService",
    "unit_suffix",
]
