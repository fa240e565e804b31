"""Observation CSV section parser tests."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from smhi_weather.exceptions import (
    CsvDataError,
    InvalidParameterDataError,
    InvalidPeriodDataError,
    InvalidRowCountError,
    InvalidStationDataError,
)
from smhi_weather.observations.csv_parser import ObservationCsvParser, parse_observation_csv
from smhi_weather.observations.models import Link

LINK = Link(
    rel="data",
    type="text/plain",
    href="https://example.test/parameter/1/station/62040/period/latest-months/data.csv",
)

STATION_HEADER = "Stationsnamn;Klimatnummer;Mäthöjd (meter över marken)"
STATION_ROW = "Helsingborg A;62040;2.0"
PARAMETER_HEADER = "Parameternamn;Beskrivning;Enhet"
PARAMETER_ROW = "Lufttemperatur;momentanvärde, 1 gång/tim;degree celsius"
PERIOD_HEADER = (
    "Tidsperiod (fr.o.m);Tidsperiod (t.o.m);Höjd (meter över havet);"
    "Latitud (decimalgrader);Longitud (decimalgrader)"
)
PERIOD_ROW = "2026-06-01 00:00:00;2026-10-18 06:00:00;22.0;56.0313;12.7616"
DATA_HEADER = "Datum;Tid (UTC);Lufttemperatur;Kvalitet;;Tidsutsnitt:"


def _make_csv(*, data_rows: list[str], drop: tuple[str, ...] = (), preamble: str = "") -> str:
    lines = [
        STATION_HEADER,
        STATION_ROW,
        "",
        PARAMETER_HEADER,
        PARAMETER_ROW,
        "",
        PERIOD_HEADER,
        PERIOD_ROW,
        "",
        DATA_HEADER,
        *data_rows,
    ]
    kept = [line for line in lines if line not in drop]
    return preamble + "\n".join(kept) + "\n"


def test_two_valid_rows_and_one_short_row_yield_two_readings() -> None:
    text = _make_csv(
        data_rows=[
            "2026-10-18;04:00:00;3.4;G;;Kvalitetskontrollerade historiska data",
            "2026-10-18;05:00:00;bad",
            "2026-10-18;06:00:00;2.9;Y",
        ]
    )

    value = parse_observation_csv(text, LINK)

    assert [(reading.date.hour, reading.value, reading.quality) for reading in value.readings] == [
        (4, "3.4", "G"),
        (6, "2.9", "Y"),
    ]
    assert value.readings[0].date == datetime(2026, 10, 18, 4, 0, tzinfo=UTC)


def test_metadata_sections_are_mapped() -> None:
    value = parse_observation_csv(_make_csv(data_rows=[]), LINK)

    assert value.station.name == "Helsingborg A"
    assert value.station.key == "62040"
    assert value.station.height == 2.0
    assert value.station.owner == ""
    assert value.parameter.key == ""
    assert value.parameter.name == "Lufttemperatur"
    assert value.parameter.summary == "momentanvärde, 1 gång/tim"
    assert value.parameter.unit == "degree celsius"
    assert value.period.from_ == datetime(2026, 6, 1, tzinfo=UTC)
    assert value.period.to == datetime(2026, 10, 18, 6, 0, tzinfo=UTC)
    assert value.updated == value.period.to
    assert len(value.position) == 1
    assert value.position[0].latitude == 56.0313
    assert value.position[0].longitude == 12.7616
    assert value.position[0].height == 22.0
    assert value.link == [LINK]
    assert value.readings == []


def test_unparsable_data_date_is_skipped() -> None:
    value = parse_observation_csv(
        _make_csv(
            data_rows=[
                "2026-10-18;25:00:00;1.0;G",
                "18/10/2026;06:00:00;1.0;G",
                "2026-10-18;06:00:00;1.5;G",
            ]
        ),
        LINK,
    )
    assert [reading.value for reading in value.readings] == ["1.5"]


def test_preamble_before_station_header_is_ignored() -> None:
    value = parse_observation_csv(
        _make_csv(data_rows=["2026-10-18;06:00:00;1.5;G"], preamble="Some banner;;\n\n"),
        LINK,
    )
    assert value.station.name == "Helsingborg A"
    assert len(value.readings) == 1


def test_windows_line_endings_are_accepted() -> None:
    text = _make_csv(data_rows=["2026-10-18;06:00:00;1.5;G"]).replace("\n", "\r\n")
    value = parse_observation_csv(text, LINK)
    assert value.readings[0].quality == "G"


def test_missing_parameter_marker_raises_parameter_error() -> None:
    with pytest.raises(InvalidParameterDataError):
        parse_observation_csv(
            _make_csv(data_rows=["2026-10-18;06:00:00;1.5;G"], drop=(PARAMETER_HEADER,)),
            LINK,
        )


def test_missing_station_header_raises_station_error() -> None:
    with pytest.raises(InvalidStationDataError):
        parse_observation_csv(_make_csv(data_rows=[], drop=(STATION_HEADER,)), LINK)


def test_non_numeric_station_height_is_fatal() -> None:
    text = _make_csv(data_rows=[]).replace(STATION_ROW, "Helsingborg A;62040;high")
    with pytest.raises(InvalidStationDataError):
        parse_observation_csv(text, LINK)


def test_short_parameter_row_is_fatal() -> None:
    text = _make_csv(data_rows=[]).replace(PARAMETER_ROW, "Lufttemperatur;;;momentanvärde")
    with pytest.raises(InvalidParameterDataError):
        parse_observation_csv(text, LINK)


def test_malformed_period_row_is_skipped_then_missing_period_is_fatal() -> None:
    text = _make_csv(data_rows=["2026-10-18;06:00:00;1.5;G"]).replace(
        PERIOD_ROW, "2026-06-01 00:00:00;2026-10-18 06:00:00;22.0;north;12.7616"
    )
    with pytest.raises(InvalidPeriodDataError):
        parse_observation_csv(text, LINK)


def test_bad_period_row_followed_by_valid_row_recovers() -> None:
    text = _make_csv(data_rows=[]).replace(
        PERIOD_ROW, f"yesterday;today;22.0;56.0;12.7\n{PERIOD_ROW}"
    )
    value = parse_observation_csv(text, LINK)
    assert value.position[0].latitude == 56.0313


def test_first_valid_station_row_is_kept() -> None:
    text = _make_csv(data_rows=[]).replace(STATION_ROW, f"{STATION_ROW}\nLund;53430;1.0")
    value = parse_observation_csv(text, LINK)
    assert value.station.name == "Helsingborg A"


@pytest.mark.parametrize("text", ["", "\n\n", "   \n"])
def test_empty_payload_raises_row_count_error(text: str) -> None:
    with pytest.raises(InvalidRowCountError):
        ObservationCsvParser().parse(text, LINK)


def test_csv_errors_share_a_base_class() -> None:
    for error in (
        InvalidStationDataError,
        InvalidParameterDataError,
        InvalidPeriodDataError,
        InvalidRowCountError,
    ):
        assert issubclass(error, CsvDataError)
