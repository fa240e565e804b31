"""Parser for SMHI's semicolon-separated observation download format.

The CSV body has four header lines, each followed by its rows:

    Stationsnamn;Klimatnummer;Mäthöjd (meter över marken)
    Helsingborg A;62040;2.0
    Parameternamn;Beskrivning;Enhet
    Lufttemperatur;momentanvärde, 1 gång/tim;degree celsius
    Tidsperiod (fr.o.m);Tidsperiod (t.o.m);Höjd (meter);Latitud (decimalgrader);Longitud (decimalgrader)
    2023-01-01 00:00:00;2023-01-02 00:00:00;22.0;56.0313;12.7616
    Datum;Tid (UTC);Lufttemperatur;Kvalitet;;Tidsutsnitt:
    2023-01-01;00:00:00;3.4;G;;

Anything before the station header is preamble and ignored.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum

from ..exceptions import (
    InvalidParameterDataError,
    InvalidPeriodDataError,
    InvalidRowCountError,
    InvalidStationDataError,
)
from .models import (
    Link,
    ObservationValue,
    Position,
    Reading,
    ValueParameter,
    ValuePeriod,
    ValueStation,
)

FIELD_SEPARATOR = ";"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S%z"
UTC_MARKER = "Z"


class CsvSection(Enum):
    SEEKING_STATION = "seeking_station"
    STATION = "station"
    PARAMETER = "parameter"
    PERIOD = "period"
    DATA = "data"


def _split_fields(line: str) -> list[str]:
    return [field for field in line.split(FIELD_SEPARATOR) if field]


def _parse_timestamp(text: str) -> datetime | None:
    try:
        return datetime.strptime(f"{text}{UTC_MARKER}", TIMESTAMP_FORMAT)
    except ValueError:
        return None


def _parse_float(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


class ObservationCsvParser:
    """Section state machine turning one CSV body into an ObservationValue.

    A header marker only moves the machine forward from the section right
    before it; every other line is a row of the current section. The station,
    parameter and period sections each keep their first valid row and ignore
    the rest. A malformed station or parameter row is fatal; malformed period
    and data rows are skipped.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("smhi_weather.observations")

    def parse(self, text: str, link: Link) -> ObservationValue:
        lines = [line for line in text.splitlines() if line.strip()]
        if not lines:
            raise InvalidRowCountError("Observation CSV contains no rows.")

        section = CsvSection.SEEKING_STATION
        station: ValueStation | None = None
        parameter: ValueParameter | None = None
        period: ValuePeriod | None = None
        position: Position | None = None
        readings: list[Reading] = []

        for line_number, line in enumerate(lines, start=1):
            next_section = self._transition(section, line)
            if next_section is not None:
                section = next_section
                continue

            if section is CsvSection.DATA:
                reading = self._parse_data_row(line, line_number)
                if reading is not None:
                    readings.append(reading)
            elif section is CsvSection.SEEKING_STATION:
                continue
            elif self._section_filled(section, station, parameter, period):
                self.logger.debug(
                    "Ignoring surplus row",
                    extra={"line": line_number, "section": section.value},
                )
            elif section is CsvSection.STATION:
                station = self._parse_station_row(line)
            elif section is CsvSection.PARAMETER:
                parameter = self._parse_parameter_row(line)
            else:
                parsed = self._parse_period_row(line, line_number)
                if parsed is not None:
                    period, position = parsed

        if station is None:
            raise InvalidStationDataError("Observation CSV has no valid station section.")
        if parameter is None:
            raise InvalidParameterDataError("Observation CSV has no valid parameter section.")
        if period is None or position is None:
            raise InvalidPeriodDataError("Observation CSV has no valid period section.")

        return ObservationValue(
            readings=readings,
            updated=period.to,
            parameter=parameter,
            station=station,
            period=period,
            position=[position],
            link=[link],
        )

    @staticmethod
    def _transition(section: CsvSection, line: str) -> CsvSection | None:
        if section is CsvSection.SEEKING_STATION and "Stationsnamn" in line:
            return CsvSection.STATION
        if section is CsvSection.STATION and line.startswith("Parameternamn"):
            return CsvSection.PARAMETER
        if section is CsvSection.PARAMETER and line.startswith("Tidsperiod"):
            return CsvSection.PERIOD
        if section is CsvSection.PERIOD and line.startswith("Datum"):
            return CsvSection.DATA
        return None

    @staticmethod
    def _section_filled(
        section: CsvSection,
        station: ValueStation | None,
        parameter: ValueParameter | None,
        period: ValuePeriod | None,
    ) -> bool:
        if section is CsvSection.STATION:
            return station is not None
        if section is CsvSection.PARAMETER:
            return parameter is not None
        return period is not None

    @staticmethod
    def _parse_station_row(line: str) -> ValueStation:
        fields = _split_fields(line)
        height = _parse_float(fields[2]) if len(fields) >= 3 else None
        if height is None:
            raise InvalidStationDataError(f"Invalid station row in observation CSV: {line!r}")
        return ValueStation(
            key=fields[1], name=fields[0], owner="", owner_category="", height=height
        )

    @staticmethod
    def _parse_parameter_row(line: str) -> ValueParameter:
        fields = _split_fields(line)
        if len(fields) < 3:
            raise InvalidParameterDataError(f"Invalid parameter row in observation CSV: {line!r}")
        return ValueParameter(key="", name=fields[0], summary=fields[1], unit=fields[2])

    def _parse_period_row(
        self, line: str, line_number: int
    ) -> tuple[ValuePeriod, Position] | None:
        fields = _split_fields(line)
        if len(fields) < 5:
            self.logger.debug("Skipping short period row", extra={"line": line_number})
            return None
        height = _parse_float(fields[2])
        latitude = _parse_float(fields[3])
        longitude = _parse_float(fields[4])
        if height is None or latitude is None or longitude is None:
            self.logger.debug("Skipping non-numeric period row", extra={"line": line_number})
            return None
        start = _parse_timestamp(fields[0])
        end = _parse_timestamp(fields[1])
        if start is None or end is None:
            self.logger.debug(
                "Skipping period row with bad timestamps", extra={"line": line_number}
            )
            return None
        period = ValuePeriod(key="", from_=start, to=end, summary="", sampling="")
        position = Position(
            from_=start,
            to=end,
            height=height,
            latitude=latitude,
            longitude=longitude,
        )
        return period, position

    def _parse_data_row(self, line: str, line_number: int) -> Reading | None:
        fields = _split_fields(line)
        if len(fields) < 4:
            self.logger.debug(
                "Skipping data row with invalid number of columns",
                extra={"line": line_number, "columns": len(fields)},
            )
            return None
        date = _parse_timestamp(f"{fields[0]} {fields[1]}")
        if date is None:
            self.logger.debug(
                "Skipping data row with invalid date",
                extra={"line": line_number, "date": f"{fields[0]} {fields[1]}"},
            )
            return None
        return Reading(date=date, value=fields[2], quality=fields[3])


def parse_observation_csv(
    text: str,
    link: Link,
    logger: logging.Logger | None = None,
) -> ObservationValue:
    """Parse one CSV observation body; see ObservationCsvParser."""
    return ObservationCsvParser(logger=logger).parse(text, link)
