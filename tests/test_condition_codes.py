"""Present-weather condition code lookup tests."""

from __future__ import annotations

import pytest

from smhi_weather.observations.condition_codes import CONDITION_CODES, describe_condition


def test_table_covers_synop_and_automatic_station_ranges() -> None:
    assert min(CONDITION_CODES) == 0
    assert max(CONDITION_CODES) == 511
    assert set(range(508, 512)) <= set(CONDITION_CODES)
    assert 300 not in CONDITION_CODES


def test_integer_code_resolves() -> None:
    assert describe_condition(2) == "Molnhimlen i stort sett oförändrad"
    assert describe_condition(511) == "Saknat värde"


@pytest.mark.parametrize("raw", ["2", "2.0", " 2 "])
def test_reading_text_resolves(raw: str) -> None:
    assert describe_condition(raw) == describe_condition(2)


@pytest.mark.parametrize("raw", [-1, 400, "", "fog", "nan", "inf"])
def test_unknown_or_unparsable_code_is_none(raw: int | str) -> None:
    assert describe_condition(raw) is None


def test_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        CONDITION_CODES[999] = "x"  # type: ignore[index]
