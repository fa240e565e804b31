"""SMHI meteorological observations: link traversal and CSV/JSON decoding."""

from .condition_codes import CONDITION_CODES, describe_condition
from .csv_parser import CsvSection, ObservationCsvParser, parse_observation_csv
from .links import has_link, resolve_link
from .models import Link, ObservationValue, Parameter, Reading, Station
from .traversal import SMHIObservationsClient

__all__ = [
    "CONDITION_CODES",
    "CsvSection",
    "Link",
    "ObservationCsvParser",
    "ObservationValue",
    "Parameter",
    "Reading",
    "SMHIObservationsClient",
    "Station",
    "describe_condition",
    "has_link",
    "parse_observation_csv",
    "resolve_link",
]
