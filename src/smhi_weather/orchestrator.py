"""Owns the latest weather batch and decides when to refresh it."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future
from datetime import UTC, datetime, timedelta
from functools import partial

from .exceptions import WeatherError
from .forecast.service import WeatherService
from .models import Coordinates, PrecipitationCategory, WeatherRecord, WeatherSymbol
from .staleness import StalenessPolicy

Subscriber = Callable[[list[WeatherRecord]], None]

PREVIEW_COORDINATES = Coordinates(latitude=56.0014127, longitude=12.7416203)


def preview_records(now: datetime | None = None) -> list[WeatherRecord]:
    """Canned batch served in preview mode; one record a minute from `now`."""
    base = now or datetime.now(UTC)
    return [
        WeatherRecord(
            timestamp=base + timedelta(seconds=60),
            latitude=PREVIEW_COORDINATES.latitude,
            longitude=PREVIEW_COORDINATES.longitude,
            air_pressure=1018,
            air_temperature=20.1,
            air_temperature_feels_like=24,
            horizontal_visibility=49.2,
            wind_direction=173,
            wind_speed=5.7,
            wind_gust_speed=9.2,
            relative_humidity=71,
            thunder_probability=1,
            total_cloud_cover=6,
            low_level_cloud_cover=2,
            medium_level_cloud_cover=0,
            high_level_cloud_cover=5,
            min_precipitation=0,
            max_precipitation=0,
            frozen_precipitation_percentage=0,
            mean_precipitation_intensity=0,
            median_precipitation_intensity=0,
            precipitation_category=PrecipitationCategory.NONE,
            symbol=WeatherSymbol.VARIABLE_CLOUDINESS,
        )
    ]


def _as_utc(value: datetime) -> datetime:
    return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)


class WeatherFetchOrchestrator:
    """Holds the current batch of records and refreshes it through a WeatherService.

    Only one fetch runs at a time. Subscribers get the current batch when they
    subscribe (empty until the first success) and every successful batch
    after that; failures keep the previous batch in place.

    Without an executor the service runs on the caller's thread. With one,
    the fetch is submitted and the result lands from the worker thread.
    """

    def __init__(
        self,
        service: WeatherService | None = None,
        coordinates: Coordinates | None = None,
        *,
        fetch_automatically: bool = True,
        preview: bool = False,
        policy: StalenessPolicy | None = None,
        executor: Executor | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._service = service
        self._coordinates = coordinates
        self.fetch_automatically = fetch_automatically
        self.preview = preview
        self.policy = policy or StalenessPolicy()
        self.logger = logger or logging.getLogger("smhi_weather.orchestrator")
        self._executor = executor
        self._lock = threading.Lock()
        self._records: list[WeatherRecord] = []
        self._subscribers: list[Subscriber] = []
        self.last_error: WeatherError | None = None
        if fetch_automatically:
            self.fetch()

    @property
    def records(self) -> list[WeatherRecord]:
        with self._lock:
            return list(self._records)

    @property
    def coordinates(self) -> Coordinates | None:
        return self._coordinates

    @coordinates.setter
    def coordinates(self, value: Coordinates | None) -> None:
        if value == self._coordinates:
            return
        self._coordinates = value
        if self.fetch_automatically:
            # Held records belong to the previous position.
            self.fetch(force=True)

    @property
    def service(self) -> WeatherService | None:
        return self._service

    @service.setter
    def service(self, value: WeatherService | None) -> None:
        if value is self._service:
            return
        self._service = value
        if self.fetch_automatically:
            self.fetch(force=True)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback`, call it with the current batch, return an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)
            current = list(self._records)
        callback(current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def fetch(self, force: bool = False) -> bool:
        """Start a fetch unless one is running or the held batch is still fresh.

        Returns True when the service was called.
        """
        if self.preview:
            self._publish(preview_records())
            return False

        with self._lock:
            if self.policy.in_flight:
                self.logger.debug("Fetch suppressed; another fetch is in flight")
                return False
            if not force and self._records and self.policy.is_fresh():
                return False
            service = self._service
            coordinates = self._coordinates
            if service is None or coordinates is None:
                return False
            self.policy.started()

        self.logger.info(
            "Fetching weather",
            extra={"lat": coordinates.latitude, "lon": coordinates.longitude, "force": force},
        )
        if self._executor is None:
            self._fetch_inline(service, coordinates)
        else:
            future = self._executor.submit(service.fetch, coordinates)
            future.add_done_callback(partial(self._on_future_done, service, coordinates))
        return True

    def refresh_if_due(self) -> bool:
        """Periodic hook: fetch when auto-fetch is on and the held batch is stale."""
        if not self.fetch_automatically or self.preview:
            return False
        with self._lock:
            due = self.policy.is_due()
        return self.fetch() if due else False

    def closest(self, to: datetime | None = None) -> WeatherRecord | None:
        """Record nearest in time to `to` (default now); the earlier one wins ties."""
        records = self.records
        if not records:
            return None
        target = _as_utc(to) if to is not None else datetime.now(UTC)
        return min(records, key=lambda record: abs((record.timestamp - target).total_seconds()))

    def between(self, start: datetime, end: datetime) -> list[WeatherRecord]:
        """Records with start <= timestamp <= end."""
        start = _as_utc(start)
        end = _as_utc(end)
        return [record for record in self.records if start <= record.timestamp <= end]

    def _fetch_inline(self, service: WeatherService, coordinates: Coordinates) -> None:
        try:
            records = service.fetch(coordinates)
        except WeatherError as exc:
            self._record_failure(exc, service, coordinates)
            return
        except Exception:
            with self._lock:
                self.policy.failed()
            raise
        self._record_success(records, service, coordinates)

    def _on_future_done(
        self, service: WeatherService, coordinates: Coordinates, future: Future
    ) -> None:
        if future.cancelled():
            with self._lock:
                self.policy.failed()
            self.logger.warning("Weather fetch was cancelled")
            return
        exc = future.exception()
        if exc is None:
            self._record_success(future.result(), service, coordinates)
        elif isinstance(exc, WeatherError):
            self._record_failure(exc, service, coordinates)
        else:
            with self._lock:
                self.policy.failed()
            self.logger.error("Unexpected weather fetch failure", exc_info=exc)

    def _superseded(self, service: WeatherService, coordinates: Coordinates) -> bool:
        """Drop a finished fetch whose service or position changed meanwhile, and refetch."""
        with self._lock:
            stale = service is not self._service or coordinates != self._coordinates
            if stale:
                self.policy.abandoned()
        if not stale:
            return False
        self.logger.info(
            "Discarding weather fetched for a superseded request",
            extra={"lat": coordinates.latitude, "lon": coordinates.longitude},
        )
        if self.fetch_automatically:
            self.fetch(force=True)
        return True

    def _record_success(
        self, records: list[WeatherRecord], service: WeatherService, coordinates: Coordinates
    ) -> None:
        if self._superseded(service, coordinates):
            return
        self.last_error = None
        self._publish(sorted(records, key=lambda record: record.timestamp), completed=True)

    def _record_failure(
        self, exc: WeatherError, service: WeatherService, coordinates: Coordinates
    ) -> None:
        if self._superseded(service, coordinates):
            return
        with self._lock:
            self.policy.failed()
            self.last_error = exc
        self.logger.warning(
            "Weather fetch failed; keeping previous records",
            extra={
                "lat": coordinates.latitude,
                "lon": coordinates.longitude,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )

    def _publish(self, records: list[WeatherRecord], *, completed: bool = False) -> None:
        with self._lock:
            self._records = list(records)
            if completed:
                self.policy.completed()
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(list(records))
