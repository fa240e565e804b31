"""Forecast CLI: fetch the SMHI point forecast, journal it and print upcoming records."""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from datetime import UTC

from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .derived import dew_point_temperature
from .exceptions import ConfigError, JournalError, WeatherError
from .forecast.service import SMHIForecastService
from .journal import JournalWriter
from .log_setup import setup_logger
from .models import Coordinates, WeatherRecord
from .orchestrator import WeatherFetchOrchestrator
from .staleness import StalenessPolicy


def parse_args() -> argparse.Namespace:
    """Parse forecast CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Fetch, normalize and journal the SMHI point forecast."
    )
    parser.add_argument("--lat", type=float, default=None, help="Latitude of the forecast point.")
    parser.add_argument("--lon", type=float, default=None, help="Longitude of the forecast point.")
    parser.add_argument(
        "--max-print",
        type=int,
        default=None,
        help="Number of forecast records to print.",
    )
    parser.add_argument(
        "--skip-incomplete",
        action="store_true",
        help="Drop time slices with missing parameters instead of failing.",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Print the canned preview record without calling SMHI.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug diagnostics such as skipped CSV rows.",
    )
    return parser.parse_args()


def _resolve_max_print(args: argparse.Namespace, settings: Settings) -> int:
    if args.max_print is not None and args.max_print <= 0:
        raise WeatherError("--max-print must be > 0 when provided.")
    return args.max_print or settings.weather_max_print


def _validate_cli_input(args: argparse.Namespace, settings: Settings) -> Coordinates:
    lat = args.lat if args.lat is not None else settings.weather_default_lat
    lon = args.lon if args.lon is not None else settings.weather_default_lon
    if lat is None or lon is None:
        raise WeatherError(
            "Missing location input: pass --lat and --lon or set WEATHER_DEFAULT_LAT/LON."
        )
    if not (-90 <= lat <= 90):
        raise WeatherError(f"Invalid latitude {lat}; expected between -90 and 90.")
    if not (-180 <= lon <= 180):
        raise WeatherError(f"Invalid longitude {lon}; expected between -180 and 180.")
    return Coordinates(latitude=lat, longitude=lon)


def _upcoming(
    records: list[WeatherRecord], orchestrator: WeatherFetchOrchestrator
) -> list[WeatherRecord]:
    closest = orchestrator.closest()
    if closest is None:
        return []
    return [record for record in records if record.timestamp >= closest.timestamp]


def _print_records(console: Console, records: list[WeatherRecord], max_print: int) -> None:
    if not records:
        console.print("No forecast records found.")
        return

    table = Table(title="SMHI Point Forecast")
    table.add_column("Valid (UTC)")
    table.add_column("Temp °")
    table.add_column("Feels like °")
    table.add_column("Dew point °")
    table.add_column("Wind m/s")
    table.add_column("Humidity %")
    table.add_column("Precip mm/h")
    table.add_column("Symbol", overflow="fold")

    for record in records[:max_print]:
        dew_point = (
            f"{dew_point_temperature(record.air_temperature, record.relative_humidity):.1f}"
            if record.relative_humidity > 0
            else "-"
        )
        table.add_row(
            record.timestamp.astimezone(UTC).isoformat(),
            f"{record.air_temperature:g}",
            f"{record.air_temperature_feels_like:.1f}",
            dew_point,
            f"{record.wind_speed:g} ({record.wind_gust_speed:g})",
            str(record.relative_humidity),
            f"{record.mean_precipitation_intensity:g}",
            record.symbol.value.replace("_", " "),
        )
    console.print(table)


def main() -> int:
    """Run the forecast fetch flow."""
    args = parse_args()
    logger = setup_logger(level=logging.DEBUG if args.verbose else logging.INFO)
    console = Console()
    session_id = uuid.uuid4().hex[:12]
    journal: JournalWriter | None = None

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    try:
        journal = JournalWriter(
            journal_dir=settings.journal_dir,
            raw_payload_dir=settings.raw_payload_dir,
            session_id=session_id,
        )
        journal.write_event(
            event_type="forecast_startup",
            payload=settings.safe_summary(),
            metadata={"session_id": session_id},
        )
    except JournalError as exc:
        logger.error("Failed to initialize forecast journal: %s", exc)
        return 3

    exit_code = 0
    try:
        max_print = _resolve_max_print(args, settings)
        if args.preview:
            preview = WeatherFetchOrchestrator(
                fetch_automatically=False, preview=True, logger=logger
            )
            preview.fetch()
            records = preview.records
            journal.write_event(
                "forecast_preview",
                payload={"record_count": len(records)},
                metadata={"session_id": session_id},
            )
            _print_records(console, records, max_print=max_print)
            return exit_code

        coordinates = _validate_cli_input(args, settings)
        journal.write_event(
            "forecast_request_start",
            payload={"lat": coordinates.latitude, "lon": coordinates.longitude},
            metadata={"session_id": session_id},
        )

        skip_incomplete = args.skip_incomplete or settings.forecast_skip_incomplete_slices
        with SMHIForecastService(
            settings=settings,
            logger=logger,
            skip_incomplete=skip_incomplete,
        ) as service:
            orchestrator = WeatherFetchOrchestrator(
                service,
                coordinates,
                fetch_automatically=settings.weather_fetch_automatically,
                policy=StalenessPolicy(
                    enabled=settings.weather_staleness_enabled,
                    max_age_seconds=settings.weather_staleness_max_age_seconds,
                ),
                logger=logger,
            )
            if not orchestrator.fetch_automatically:
                # Construction only fetches in automatic mode.
                orchestrator.fetch(force=True)
            if orchestrator.last_error is not None:
                raise orchestrator.last_error

            fetch_result = service.last_result
            raw_path: str | None = None
            if settings.weather_journal_raw_payloads and fetch_result is not None:
                raw_path = str(
                    journal.write_raw_snapshot("smhi_forecast", fetch_result.raw_payload)
                )
                journal.write_event(
                    "forecast_raw_snapshot",
                    payload={"forecast_raw_path": raw_path, "url": fetch_result.source_url},
                    metadata={"session_id": session_id},
                )

            records = orchestrator.records
            journal.write_event(
                "forecast_request_success",
                payload={
                    "record_count": len(records),
                    "approved_time": fetch_result.approved_time if fetch_result else None,
                    "first_record_id": records[0].record_id if records else None,
                    "raw_path": raw_path,
                },
                metadata={"session_id": session_id},
            )
            console.print(
                f"Service={service.service_name} records={len(records)} "
                f"location=({coordinates.latitude:.4f}, {coordinates.longitude:.4f})"
            )
            _print_records(console, _upcoming(records, orchestrator), max_print=max_print)
    except (WeatherError, JournalError) as exc:
        exit_code = 4
        logger.error("Forecast failure: %s", exc)
        try:
            journal.write_event(
                "forecast_request_failure",
                payload={"error": str(exc), "type": type(exc).__name__},
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write forecast_request_failure event.")
    except Exception as exc:  # pragma: no cover - last-resort catch for CLI runtime
        exit_code = 99
        logger.exception("Unexpected forecast CLI failure: %s", exc)
        try:
            journal.write_event(
                "forecast_request_failure_unhandled",
                payload={"error": str(exc), "type": type(exc).__name__},
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write forecast_request_failure_unhandled event.")
    finally:
        if journal is not None:
            try:
                journal.write_event(
                    "forecast_shutdown",
                    payload={"exit_code": exit_code},
                    metadata={"session_id": session_id},
                )
            except JournalError:
                logger.error("Failed to write forecast_shutdown event.")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
