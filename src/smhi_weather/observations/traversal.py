"""SMHI observations (metobs) client walking the API's link graph."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..exceptions import (
    DecodeError,
    MissingPeriodDataError,
    MissingPeriodError,
    MissingResourceError,
    MissingStationError,
    NoMatchingLinkError,
    TransportError,
)
from .csv_parser import ObservationCsvParser
from .links import CSV_CONTENT_TYPE, JSON_CONTENT_TYPE, has_link, resolve_link, select_link
from .models import (
    ObservationValue,
    Parameter,
    Period,
    PeriodData,
    PeriodDetails,
    Resource,
    Service,
    Station,
    StationParameter,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class SMHIObservationsClient:
    """Resolves a station/parameter/period triple into an ObservationValue.

    Each hop is one blocking GET whose URL comes from the previous response,
    so the walk is strictly sequential. Nothing is retried.
    """

    def __init__(self, settings: Settings, logger: logging.Logger) -> None:
        self.settings = settings
        self.logger = logger
        self.csv_parser = ObservationCsvParser(logger=logger)
        self.last_value_payload: dict[str, Any] | str | None = None
        self.last_value_url: str | None = None
        self._client = httpx.Client(
            timeout=settings.smhi_timeout_seconds,
            headers={"User-Agent": settings.smhi_user_agent},
        )

    def __enter__(self) -> SMHIObservationsClient:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def by_station_name(
        self,
        station_name: str,
        parameter_key: str,
        period_key: str,
    ) -> ObservationValue:
        """Walk to the value of the first active station whose name contains `station_name`."""
        return self._walk(
            parameter_key,
            period_key,
            lambda parameter: parameter.station_named(station_name),
            station_query=f"name containing {station_name!r}",
        )

    def by_coordinates(
        self,
        latitude: float,
        longitude: float,
        parameter_key: str,
        period_key: str,
    ) -> ObservationValue:
        """Walk to the value of the active station closest to the point."""
        return self._walk(
            parameter_key,
            period_key,
            lambda parameter: parameter.closest_station(latitude, longitude),
            station_query=f"closest to ({latitude}, {longitude})",
        )

    def _walk(
        self,
        parameter_key: str,
        period_key: str,
        select_station: Callable[[Parameter], Station | None],
        *,
        station_query: str,
    ) -> ObservationValue:
        service = self.fetch_service()
        resource = service.find_resource(parameter_key)
        if resource is None:
            raise MissingResourceError(f"No observation resource with key {parameter_key!r}.")

        parameter = self.fetch_resource(resource)
        station = select_station(parameter)
        if station is None:
            raise MissingStationError(
                f"No active station {station_query} for parameter {parameter_key!r}."
            )
        self.logger.debug(
            "Selected station",
            extra={"station": station.name, "station_key": station.key},
        )

        station_parameter = self.fetch_station(station)
        period = station_parameter.find_period(period_key)
        if period is None:
            raise MissingPeriodError(
                f"Station {station.name!r} has no period {period_key!r} "
                f"for parameter {parameter_key!r}."
            )

        details = self.fetch_period(period)
        if not details.data:
            raise MissingPeriodDataError(
                f"Period {period_key!r} at station {station.name!r} has no data entries."
            )
        return self.fetch_value(details.data[0])

    def fetch_service(self) -> Service:
        url = f"{self.settings.observations_base_url}.json"
        return self._decode(Service, self._request_json(url, context="service root"), url)

    def fetch_parameter(self, key: str) -> Parameter:
        """Fetch a parameter's station list directly, without the service root hop."""
        url = f"{self.settings.observations_base_url}/parameter/{key}.json"
        return self._decode(Parameter, self._request_json(url, context="parameter"), url)

    def fetch_resource(self, resource: Resource) -> Parameter:
        url = resolve_link(resource.link, JSON_CONTENT_TYPE)
        return self._decode(Parameter, self._request_json(url, context="resource"), url)

    def fetch_station(self, station: Station) -> StationParameter:
        url = resolve_link(station.link, JSON_CONTENT_TYPE)
        return self._decode(StationParameter, self._request_json(url, context="station"), url)

    def fetch_period(self, period: Period) -> PeriodDetails:
        url = resolve_link(period.link, JSON_CONTENT_TYPE)
        return self._decode(PeriodDetails, self._request_json(url, context="period"), url)

    def fetch_value(self, data: PeriodData) -> ObservationValue:
        """Fetch the final value, preferring JSON and falling back to CSV."""
        if has_link(data.link, JSON_CONTENT_TYPE):
            url = resolve_link(data.link, JSON_CONTENT_TYPE)
            payload = self._request_json(url, context="value")
            self._remember(url, payload)
            return self._decode(ObservationValue, payload, url)

        if has_link(data.link, CSV_CONTENT_TYPE):
            link = select_link(data.link, CSV_CONTENT_TYPE)
            text = self._request_text(link.href, context="value csv")
            self._remember(link.href, text)
            return self.csv_parser.parse(text, link)

        raise NoMatchingLinkError((JSON_CONTENT_TYPE, CSV_CONTENT_TYPE))

    def _remember(self, url: str, payload: dict[str, Any] | str) -> None:
        self.last_value_url = url
        self.last_value_payload = payload

    @staticmethod
    def _decode(model: type[ModelT], payload: dict[str, Any], url: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError(
                f"SMHI observations payload at {url} does not match {model.__name__}: {exc}"
            ) from exc

    def _get(self, url: str, context: str) -> httpx.Response:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise TransportError(
                f"SMHI {context} failed with status {status} at {url}: {exc.response.text[:300]}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"SMHI {context} request failed at {url}: {exc}") from exc
        return response

    def _request_json(self, url: str, context: str) -> dict[str, Any]:
        response = self._get(url, context)
        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError(f"SMHI {context} returned non-JSON response at {url}.") from exc
        if not isinstance(payload, dict):
            raise DecodeError(
                f"SMHI {context} returned unexpected payload type "
                f"{type(payload).__name__} at {url}."
            )
        return payload

    def _request_text(self, url: str, context: str) -> str:
        response = self._get(url, context)
        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"SMHI {context} at {url} is not valid UTF-8.") from exc
