"""Weather service contract and the SMHI point forecast implementation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..exceptions import DecodeError, TransportError
from ..models import Coordinates, WeatherRecord
from .models import ForecastPayload
from .normalizer import ForecastNormalizer


class WeatherService(ABC):
    """Data source consumed by the fetch orchestrator."""

    @abstractmethod
    def fetch(self, coordinates: Coordinates) -> list[WeatherRecord]:
        """Fetch and normalize all records for a position."""

    @abstractmethod
    def close(self) -> None:
        """Release service resources."""


class ForecastFetchResult(BaseModel):
    """Raw + normalized result of one forecast fetch."""

    source_url: str
    retrieved_at: datetime
    approved_time: str
    reference_time: str
    records: list[WeatherRecord]
    raw_payload: dict[str, Any]


class SMHIForecastService(WeatherService):
    """Fetches pmp3g point forecasts and normalizes every time slice."""

    service_name = "smhi-pmp3g"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        *,
        skip_incomplete: bool | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.skip_incomplete = (
            settings.forecast_skip_incomplete_slices if skip_incomplete is None else skip_incomplete
        )
        self.normalizer = ForecastNormalizer(logger=logger)
        self.last_result: ForecastFetchResult | None = None
        self._client = httpx.Client(
            timeout=settings.smhi_timeout_seconds,
            headers={
                "Accept": "application/json",
                "User-Agent": settings.smhi_user_agent,
            },
        )

    def __enter__(self) -> SMHIForecastService:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def forecast_url(self, coordinates: Coordinates) -> str:
        return (
            f"{self.settings.forecast_base_url}/geotype/point"
            f"/lon/{coordinates.longitude:.6f}/lat/{coordinates.latitude:.6f}/data.json"
        )

    def fetch(self, coordinates: Coordinates) -> list[WeatherRecord]:
        return self.fetch_forecast(coordinates).records

    def fetch_forecast(self, coordinates: Coordinates) -> ForecastFetchResult:
        """Fetch one point forecast, keeping the raw payload alongside the records."""
        url = self.forecast_url(coordinates)
        raw_payload = self._request_json(url, context="point forecast")
        try:
            payload = ForecastPayload.model_validate(raw_payload)
        except ValidationError as exc:
            raise DecodeError(f"SMHI point forecast payload at {url} is malformed: {exc}") from exc

        records = self.normalizer.normalize_all(
            payload,
            coordinates,
            skip_incomplete=self.skip_incomplete,
        )
        self.logger.info(
            "Forecast normalized",
            extra={
                "url": url,
                "slices": len(payload.time_series),
                "records": len(records),
            },
        )
        result = ForecastFetchResult(
            source_url=url,
            retrieved_at=datetime.now(UTC),
            approved_time=payload.approved_time,
            reference_time=payload.reference_time,
            records=records,
            raw_payload=raw_payload,
        )
        self.last_result = result
        return result

    def _request_json(self, url: str, context: str) -> dict[str, Any]:
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
