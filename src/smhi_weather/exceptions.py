"""Application exception classes."""


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class JournalError(Exception):
    """Raised when writing to journal files fails."""


class WeatherError(Exception):
    """Base class for every failure raised while fetching or normalizing weather data."""


class TransportError(WeatherError):
    """Raised for network/HTTP failures; never retried."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(WeatherError):
    """Raised when a JSON or CSV payload is structurally unparsable."""


class NoMatchingLinkError(WeatherError):
    """Raised when a resource exposes no link with the requested content type."""

    def __init__(self, content_types: tuple[str, ...]) -> None:
        super().__init__(f"No link matching content type(s): {', '.join(content_types)}")
        self.content_types = content_types


class MissingResourceError(WeatherError):
    """Raised when the service root has no resource with the requested key."""


class MissingStationError(WeatherError):
    """Raised when no active station matches the requested name or position."""


class MissingPeriodError(WeatherError):
    """Raised when a station has no period with the requested key."""


class MissingPeriodDataError(WeatherError):
    """Raised when a period exposes no data entries."""


class CsvDataError(DecodeError):
    """Raised when a required CSV section is absent or malformed."""


class InvalidStationDataError(CsvDataError):
    """Raised when the CSV station section is absent or malformed."""


class InvalidParameterDataError(CsvDataError):
    """Raised when the CSV parameter section is absent or malformed."""


class InvalidPeriodDataError(CsvDataError):
    """Raised when the CSV period section is absent or malformed."""


class InvalidRowCountError(CsvDataError):
    """Raised when a CSV payload contains no rows at all."""


class MissingFieldError(WeatherError):
    """Raised when a forecast slice lacks a field required by WeatherRecord."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Forecast time slice is missing required field '{field}'.")
        self.field = field
