"""Derived meteorological quantities computed from base measurements.

All temperatures are degrees Celsius, wind speeds metres per second and
relative humidity a percentage (0-100).
"""

from __future__ import annotations

import math

# Rothfusz regression coefficients, Celsius form.
# https://en.wikipedia.org/wiki/Heat_index
_HEAT_INDEX_COEFFICIENTS = (
    -8.78469475556,
    1.61139411,
    2.33854883889,
    -0.14611605,
    -0.012308094,
    -0.0164248277778,
    0.002211732,
    0.00072546,
    -0.000003582,
)
HEAT_INDEX_MIN_TEMPERATURE = 27.0
HEAT_INDEX_MIN_HUMIDITY = 40.0

# https://www.smhi.se/kunskapsbanken/meteorologi/vindens-kyleffekt-1.259
WIND_CHILL_MIN_TEMPERATURE = -40.0
WIND_CHILL_MAX_TEMPERATURE = 10.0
WIND_CHILL_MIN_WIND = 2.0
WIND_CHILL_MAX_WIND = 35.0

# Magnus coefficients (b, c) above and at-or-below freezing.
_MAGNUS_ABOVE_FREEZING = (17.368, 238.88)
_MAGNUS_BELOW_FREEZING = (17.966, 247.15)


def heat_index_adjusted_temperature(temperature: float, humidity: float) -> float:
    """Return the heat index, or `temperature` itself outside the valid range."""
    t = temperature
    r = humidity
    if t < HEAT_INDEX_MIN_TEMPERATURE or r < HEAT_INDEX_MIN_HUMIDITY:
        return t
    c1, c2, c3, c4, c5, c6, c7, c8, c9 = _HEAT_INDEX_COEFFICIENTS
    return (
        c1
        + c2 * t
        + c3 * r
        + c4 * t * r
        + c5 * t**2
        + c6 * r**2
        + c7 * t**2 * r
        + c8 * t * r**2
        + c9 * t**2 * r**2
    )


def wind_chill_adjusted_temperature(temperature: float, wind_speed: float) -> float:
    """Return the wind chill temperature, or `temperature` itself outside the valid range."""
    t = temperature
    v = wind_speed
    if not WIND_CHILL_MIN_TEMPERATURE <= t <= WIND_CHILL_MAX_TEMPERATURE:
        return t
    if not WIND_CHILL_MIN_WIND <= v <= WIND_CHILL_MAX_WIND:
        return t
    v_exp = v**0.16
    return 13.12 + 0.6215 * t - 13.956 * v_exp + 0.48669 * t * v_exp


def feels_like_temperature(temperature: float, humidity: float, wind_speed: float) -> float:
    """Heat index first, then wind chill on the result."""
    return wind_chill_adjusted_temperature(
        heat_index_adjusted_temperature(temperature, humidity),
        wind_speed,
    )


def dew_point_temperature(temperature: float, humidity: float) -> float:
    """Return the dew point using the Magnus formula.

    Coefficients follow meteocalc: one pair above freezing, another at or
    below. Humidity must be > 0; a zero humidity has no dew point and raises
    ValueError from the logarithm.
    """
    b, c = _MAGNUS_ABOVE_FREEZING if temperature > 0 else _MAGNUS_BELOW_FREEZING
    pa = humidity / 100 * math.exp(b * temperature / (c + temperature))
    return c * math.log(pa) / (b - math.log(pa))
