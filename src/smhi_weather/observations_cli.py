"""Observations CLI: walk the SMHI metobs API to one station and print its readings."""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from datetime import UTC

from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import ConfigError, JournalError, WeatherError
from .journal import JournalWriter
from .log_setup import setup_logger
from .observations.condition_codes import PRESENT_WEATHER_PARAMETER, describe_condition
from .observations.models import ObservationValue
from .observations.traversal import SMHIObservationsClient


def parse_args() -> argparse.Namespace:
    """Parse observations CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Fetch and journal SMHI station observations."
    )
    parser.add_argument(
        "--station",
        type=str,
        default=None,
        help="Case-insensitive substring of the station name.",
    )
    parser.add_argument(
        "--lat", type=float, default=None, help="Latitude for closest-station lookup."
    )
    parser.add_argument(
        "--lon", type=float, default=None, help="Longitude for closest-station lookup."
    )
    parser.add_argument(
        "--parameter",
        type=str,
        default=None,
        help="Observation parameter key, e.g. 1 for air temperature.",
    )
    parser.add_argument(
        "--period",
        type=str,
        default=None,
        help="Period key, e.g. latest-hour, latest-day, latest-months.",
    )
    parser.add_argument(
        "--max-print",
        type=int,
        default=None,
        help="Number of most recent readings to print.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug diagnostics such as skipped CSV rows.",
    )
    return parser.parse_args()


def _validate_cli_input(
    args: argparse.Namespace, settings: Settings
) -> tuple[str | None, float | None, float | None]:
    if args.max_print is not None and args.max_print <= 0:
        raise WeatherError("--max-print must be > 0 when provided.")

    if args.station is not None:
        if args.lat is not None or args.lon is not None:
            raise WeatherError("Use either --station or --lat/--lon, not both.")
        if not args.station.strip():
            raise WeatherError("--station must not be empty.")
        return args.station.strip(), None, None

    lat = args.lat if args.lat is not None else settings.weather_default_lat
    lon = args.lon if args.lon is not None else settings.weather_default_lon
    if lat is None or lon is None:
        raise WeatherError(
            "Missing station input: pass --station, --lat and --lon, or set "
            "WEATHER_DEFAULT_LAT/LON."
        )
    if not (-90 <= lat <= 90):
        raise WeatherError(f"Invalid latitude {lat}; expected between -90 and 90.")
    if not (-180 <= lon <= 180):
        raise WeatherError(f"Invalid longitude {lon}; expected between -180 and 180.")
    return None, lat, lon


def _print_value(
    console: Console, value: ObservationValue, parameter_key: str, max_print: int
) -> None:
    console.print(
        f"Station={value.station.name} ({value.station.key}) "
        f"parameter={value.parameter.name} unit={value.parameter.unit} "
        f"readings={len(value.readings)}"
    )
    if not value.readings:
        console.print("No readings in period.")
        return

    # CSV bodies carry no parameter key, so use the requested one.
    describe = parameter_key == PRESENT_WEATHER_PARAMETER
    table = Table(title=f"SMHI Observations: {value.parameter.name}")
    table.add_column("Time (UTC)")
    table.add_column("Value")
    table.add_column("Quality")
    if describe:
        table.add_column("Condition", overflow="fold")

    for reading in value.readings[-max_print:]:
        row = [reading.date.astimezone(UTC).isoformat(), reading.value, reading.quality]
        if describe:
            row.append(describe_condition(reading.value) or "-")
        table.add_row(*row)
    console.print(table)


def main() -> int:
    """Run the observations fetch flow."""
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
            event_type="observations_startup",
            payload=settings.safe_summary(),
            metadata={"session_id": session_id},
        )
    except JournalError as exc:
        logger.error("Failed to initialize observations journal: %s", exc)
        return 3

    exit_code = 0
    try:
        station_name, lat, lon = _validate_cli_input(args, settings)
        parameter_key = args.parameter or settings.observations_default_parameter
        period_key = args.period or settings.observations_default_period
        journal.write_event(
            "observations_request_start",
            payload={
                "station": station_name,
                "lat": lat,
                "lon": lon,
                "parameter": parameter_key,
                "period": period_key,
            },
            metadata={"session_id": session_id},
        )

        with SMHIObservationsClient(settings=settings, logger=logger) as client:
            if station_name is not None:
                value = client.by_station_name(station_name, parameter_key, period_key)
            else:
                value = client.by_coordinates(lat, lon, parameter_key, period_key)

            raw_path: str | None = None
            if settings.weather_journal_raw_payloads and client.last_value_payload is not None:
                raw_path = str(
                    journal.write_raw_snapshot("smhi_observation_value", client.last_value_payload)
                )
                journal.write_event(
                    "observations_raw_snapshot",
                    payload={"value_raw_path": raw_path, "url": client.last_value_url},
                    metadata={"session_id": session_id},
                )

            journal.write_event(
                "observations_request_success",
                payload={
                    "station": value.station.name,
                    "station_key": value.station.key,
                    "parameter": value.parameter.name,
                    "reading_count": len(value.readings),
                    "updated": value.updated,
                    "raw_path": raw_path,
                },
                metadata={"session_id": session_id},
            )
            max_print = args.max_print or settings.weather_max_print
            _print_value(console, value, parameter_key=parameter_key, max_print=max_print)
    except (WeatherError, JournalError) as exc:
        exit_code = 4
        logger.error("Observations failure: %s", exc)
        try:
            journal.write_event(
                "observations_request_failure",
                payload={"error": str(exc), "type": type(exc).__name__},
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write observations_request_failure event.")
    except Exception as exc:  # pragma: no cover - last-resort catch for CLI runtime
        exit_code = 99
        logger.exception("Unexpected observations CLI failure: %s", exc)
        try:
            journal.write_event(
                "observations_request_failure_unhandled",
                payload={"error": str(exc), "type": type(exc).__name__},
                metadata={"session_id": session_id},
            )
        except JournalError:
            logger.error("Failed to write observations_request_failure_unhandled event.")
    finally:
        if journal is not None:
            try:
                journal.write_event(
                    "observations_shutdown",
                    payload={"exit_code": exit_code},
                    metadata={"session_id": session_id},
                )
            except JournalError:
                logger.error("Failed to write observations_shutdown event.")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
