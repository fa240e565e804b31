"""Wire models for the SMHI point forecast (pmp3g) payload."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from ..derived import heat_index_adjusted_temperature, wind_chill_adjusted_temperature

LOGGER = logging.getLogger("smhi_weather.forecast")


class ParameterName(str, Enum):
    """Forecast parameter identifiers as they appear on the wire."""

    AIR_PRESSURE = "msl"
    AIR_TEMPERATURE = "t"
    HORIZONTAL_VISIBILITY = "vis"
    WIND_DIRECTION = "wd"
    WIND_SPEED = "ws"
    RELATIVE_HUMIDITY = "r"
    THUNDER_PROBABILITY = "tstm"
    TOTAL_CLOUD_COVER = "tcc_mean"
    LOW_LEVEL_CLOUD_COVER = "lcc_mean"
    MEDIUM_LEVEL_CLOUD_COVER = "mcc_mean"
    HIGH_LEVEL_CLOUD_COVER = "hcc_mean"
    WIND_GUST_SPEED = "gust"
    MIN_PRECIPITATION = "pmin"
    MAX_PRECIPITATION = "pmax"
    FROZEN_PRECIPITATION_PERCENTAGE = "spp"
    PRECIPITATION_CATEGORY = "pcat"
    MEAN_PRECIPITATION_INTENSITY = "pmean"
    MEDIAN_PRECIPITATION_INTENSITY = "pmedian"
    WEATHER_SYMBOL = "Wsymb2"

    @classmethod
    def lookup(cls, wire_name: str) -> ParameterName | None:
        try:
            return cls(wire_name)
        except ValueError:
            return None


# Parameters whose value is an integer; the wire sends floats, we truncate.
INTEGER_PARAMETERS: frozenset[ParameterName] = frozenset(
    {
        ParameterName.RELATIVE_HUMIDITY,
        ParameterName.THUNDER_PROBABILITY,
        ParameterName.TOTAL_CLOUD_COVER,
        ParameterName.LOW_LEVEL_CLOUD_COVER,
        ParameterName.MEDIUM_LEVEL_CLOUD_COVER,
        ParameterName.HIGH_LEVEL_CLOUD_COVER,
        ParameterName.FROZEN_PRECIPITATION_PERCENTAGE,
        ParameterName.PRECIPITATION_CATEGORY,
        ParameterName.WEATHER_SYMBOL,
    }
)

# SMHI reports "no frozen precipitation" as -9.
FROZEN_PRECIPITATION_SENTINEL = -9

UNIT_SUFFIXES: Mapping[str, str] = MappingProxyType(
    {
        "percent": "%",
        "kg/m2/h": "mm/h",
        "octas": "%",
        "hPa": "hPa",
        "Cel": "°",
        "km": "km",
        "degree": "",
        "m/s": "m/s",
    }
)


def unit_suffix(unit: str) -> str | None:
    """Display suffix for a wire unit tag, or None when the unit is unknown."""
    return UNIT_SUFFIXES.get(unit)


class ForecastParameter(BaseModel):
    """One named measurement inside a forecast time slice."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    level_type: str = Field(default="", alias="levelType")
    level: int = 0
    unit: str = ""
    values: list[float] = Field(default_factory=list)

    @property
    def parameter_name(self) -> ParameterName | None:
        return ParameterName.lookup(self.name)

    @property
    def suffix(self) -> str | None:
        return unit_suffix(self.unit)

    @property
    def first_value(self) -> float | None:
        return self.values[0] if self.values else None


class ParameterTable:
    """Immutable per-slice mapping from parameter name to its measurement.

    Built with `from_parameters`, which keeps the first occurrence of a
    repeated name and drops names the client does not know.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[ParameterName, ForecastParameter] | None = None) -> None:
        self._entries = MappingProxyType(dict(entries or {}))

    @classmethod
    def from_parameters(
        cls,
        parameters: Iterable[ForecastParameter],
        logger: logging.Logger | None = None,
    ) -> ParameterTable:
        log = logger or LOGGER
        entries: dict[ParameterName, ForecastParameter] = {}
        for parameter in parameters:
            name = parameter.parameter_name
            if name is None:
                log.debug("Ignoring unknown forecast parameter %r", parameter.name)
                continue
            if name in entries:
                log.debug("Ignoring repeated forecast parameter %r", parameter.name)
                continue
            entries[name] = parameter
        return cls(entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[ParameterName]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ParameterTable({sorted(name.value for name in self._entries)})"

    def get(self, name: ParameterName) -> ForecastParameter | None:
        return self._entries.get(name)

    def raw_value(self, name: ParameterName) -> float | None:
        """First raw value for `name`; None when absent, empty or not finite."""
        parameter = self._entries.get(name)
        if parameter is None:
            return None
        raw = parameter.first_value
        if raw is None or not math.isfinite(raw):
            return None
        return raw

    def value(self, name: ParameterName) -> float | int | None:
        """First value for `name` with integer truncation and the -9 sentinel applied."""
        raw = self.raw_value(name)
        if raw is None:
            return None
        if name not in INTEGER_PARAMETERS:
            return raw
        coerced = int(raw)
        if (
            name is ParameterName.FROZEN_PRECIPITATION_PERCENTAGE
            and coerced == FROZEN_PRECIPITATION_SENTINEL
        ):
            return 0
        return coerced

    @property
    def heat_index(self) -> float | None:
        temperature = self.raw_value(ParameterName.AIR_TEMPERATURE)
        humidity = self.raw_value(ParameterName.RELATIVE_HUMIDITY)
        if temperature is None or humidity is None:
            return None
        return heat_index_adjusted_temperature(temperature, humidity)

    @property
    def wind_chill(self) -> float | None:
        temperature = self.raw_value(ParameterName.AIR_TEMPERATURE)
        wind_speed = self.raw_value(ParameterName.WIND_SPEED)
        if temperature is None or wind_speed is None:
            return None
        return wind_chill_adjusted_temperature(temperature, wind_speed)

    @property
    def feels_like(self) -> float | None:
        """Wind chill of the heat index; plain temperature when humidity or wind is missing."""
        temperature = self.raw_value(ParameterName.AIR_TEMPERATURE)
        if temperature is None:
            return None
        humidity = self.raw_value(ParameterName.RELATIVE_HUMIDITY)
        wind_speed = self.raw_value(ParameterName.WIND_SPEED)
        if humidity is None or wind_speed is None:
            return temperature
        return wind_chill_adjusted_temperature(
            heat_index_adjusted_temperature(temperature, humidity),
            wind_speed,
        )


class ForecastTimeSlice(BaseModel):
    """All parameters forecast for one valid time."""

    model_config = ConfigDict(populate_by_name=True)

    valid_time: datetime = Field(alias="validTime")
    parameters: list[ForecastParameter] = Field(default_factory=list)

    def table(self, logger: logging.Logger | None = None) -> ParameterTable:
        return ParameterTable.from_parameters(self.parameters, logger=logger)


class ForecastGeometry(BaseModel):
    type: str
    coordinates: list[list[float]] = Field(default_factory=list)


class ForecastPayload(BaseModel):
    """Top-level pmp3g point forecast document."""

    model_config = ConfigDict(populate_by_name=True)

    approved_time: str = Field(alias="approvedTime")
    reference_time: str = Field(alias="referenceTime")
    geometry: ForecastGeometry
    time_series: list[ForecastTimeSlice] = Field(alias="timeSeries")
