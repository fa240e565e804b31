"""SMHI observations link-graph traversal tests."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from smhi_weather.exceptions import (
    DecodeError,
    MissingPeriodDataError,
    MissingPeriodError,
    MissingResourceError,
    MissingStationError,
    NoMatchingLinkError,
    TransportError,
)
from smhi_weather.observations.traversal import SMHIObservationsClient

BASE_URL = "https://opendata-download-metobs.smhi.se/api/version/1.0"
SERVICE_URL = f"{BASE_URL}.json"
PARAMETER_URL = f"{BASE_URL}/parameter/1.json"
HELSINGBORG_URL = f"{BASE_URL}/parameter/1/station/62040.json"
LUND_URL = f"{BASE_URL}/parameter/1/station/53430.json"
MALMO_URL = f"{BASE_URL}/parameter/1/station/52350.json"
PERIOD_URL = f"{BASE_URL}/parameter/1/station/62040/period/latest-hour.json"
VALUE_JSON_URL = f"{BASE_URL}/parameter/1/station/62040/period/latest-hour/data.json"
VALUE_CSV_URL = f"{BASE_URL}/parameter/1/station/62040/period/latest-hour/data.csv"


def _make_settings() -> Any:
    return SimpleNamespace(
        observations_base_url=BASE_URL,
        smhi_timeout_seconds=5.0,
        smhi_user_agent="smhi-weather-tests/0.1 (contact: test@example.com)",
    )


def _json_link(href: str) -> dict[str, str]:
    return {"rel": "data", "type": "application/json", "href": href}


def _station(name: str, key: str, lat: float, lon: float, href: str, active: bool = True) -> dict:
    return {
        "name": name,
        "key": key,
        "latitude": lat,
        "longitude": lon,
        "active": active,
        "from": 1_104_537_600_000,
        "to": 1_792_296_000_000,
        "link": [_json_link(href)],
    }


def _graph(value_links: list[dict[str, str]] | None = None) -> dict[str, Any]:
    return {
        SERVICE_URL: {
            "key": "1.0",
            "resource": [
                {"key": "1", "title": "Lufttemperatur", "link": [_json_link(PARAMETER_URL)]},
            ],
        },
        PARAMETER_URL: {
            "key": "1",
            "station": [
                _station("Lund", "53430", 55.7137, 13.2124, LUND_URL, active=False),
                _station("Helsingborg A", "62040", 56.0313, 12.7616, HELSINGBORG_URL),
                _station("Malmö A", "52350", 55.5714, 13.0734, MALMO_URL),
            ],
        },
        HELSINGBORG_URL: {
            "key": "62040",
            "period": [{"key": "latest-hour", "link": [_json_link(PERIOD_URL)]}],
        },
        MALMO_URL: {"key": "52350", "period": []},
        PERIOD_URL: {
            "key": "latest-hour",
            "data": [{"key": None, "link": value_links or [_json_link(VALUE_JSON_URL)]}],
        },
        VALUE_JSON_URL: {
            "value": [{"date": 1_792_303_200_000, "value": "7.4", "quality": "G"}],
            "updated": 1_792_303_200_000,
            "parameter": {"key": "1", "name": "Lufttemperatur", "unit": "degree celsius"},
            "station": {"key": "62040", "name": "Helsingborg A", "height": 2.0},
            "period": {"key": "latest-hour", "from": 1_792_299_601_000, "to": 1_792_303_200_000},
            "position": [
                {
                    "from": 1_104_537_600_000,
                    "to": 1_792_303_200_000,
                    "height": 22.0,
                    "latitude": 56.0313,
                    "longitude": 12.7616,
                }
            ],
            "link": [_json_link(VALUE_JSON_URL)],
        },
    }


def _make_client(
    graph: dict[str, Any] | None = None,
    texts: dict[str, str] | None = None,
) -> tuple[SMHIObservationsClient, list[str]]:
    client = SMHIObservationsClient(
        settings=_make_settings(),
        logger=logging.getLogger("test_observation_traversal"),
    )
    payloads = _graph() if graph is None else graph
    requested: list[str] = []

    def _fake_json(url: str, context: str) -> dict[str, Any]:
        requested.append(url)
        if url not in payloads:
            raise TransportError(f"SMHI {context} failed with status 404 at {url}", status_code=404)
        return payloads[url]

    def _fake_text(url: str, context: str) -> str:
        requested.append(url)
        return (texts or {})[url]

    client._request_json = _fake_json  # type: ignore[assignment]
    client._request_text = _fake_text  # type: ignore[assignment]
    return client, requested


def test_walk_by_station_name_follows_json_links() -> None:
    client, requested = _make_client()

    value = client.by_station_name("helsingborg", "1", "latest-hour")

    assert requested == [SERVICE_URL, PARAMETER_URL, HELSINGBORG_URL, PERIOD_URL, VALUE_JSON_URL]
    assert value.station.name == "Helsingborg A"
    assert value.latest is not None
    assert value.latest.value == "7.4"
    assert value.latest.date == datetime.fromtimestamp(1_792_303_200, tz=UTC)
    assert client.last_value_url == VALUE_JSON_URL
    assert isinstance(client.last_value_payload, dict)


def test_station_name_match_skips_inactive_stations() -> None:
    client, _ = _make_client()
    with pytest.raises(MissingStationError, match="Lund"):
        client.by_station_name("Lund", "1", "latest-hour")


def test_walk_by_coordinates_picks_closest_active_station() -> None:
    client, requested = _make_client()

    value = client.by_coordinates(56.05, 12.70, "1", "latest-hour")

    assert HELSINGBORG_URL in requested
    assert value.station.key == "62040"


def test_closest_station_ignores_nearer_inactive_station() -> None:
    client, _ = _make_client()
    parameter = client.fetch_parameter("1")
    closest = parameter.closest_station(55.7137, 13.2124)
    assert closest is not None
    assert closest.name == "Malmö A"


def test_unknown_parameter_key_raises_missing_resource() -> None:
    client, requested = _make_client()
    with pytest.raises(MissingResourceError):
        client.by_station_name("Helsingborg", "39", "latest-hour")
    assert requested == [SERVICE_URL]


def test_missing_period_key_raises() -> None:
    client, _ = _make_client()
    with pytest.raises(MissingPeriodError, match="latest-day"):
        client.by_station_name("Helsingborg", "1", "latest-day")


def test_station_without_requested_period_raises() -> None:
    client, _ = _make_client()
    with pytest.raises(MissingPeriodError):
        client.by_station_name("Malmö", "1", "latest-hour")


def test_period_without_data_raises() -> None:
    graph = _graph()
    graph[PERIOD_URL] = {"key": "latest-hour", "data": []}
    client, _ = _make_client(graph)
    with pytest.raises(MissingPeriodDataError):
        client.by_station_name("Helsingborg", "1", "latest-hour")


def test_value_falls_back_to_csv_link() -> None:
    csv_link = {"rel": "data", "type": "text/plain", "href": VALUE_CSV_URL}
    text = "\n".join(
        [
            "Stationsnamn;Klimatnummer;Mäthöjd (meter över marken)",
            "Helsingborg A;62040;2.0",
            "Parameternamn;Beskrivning;Enhet",
            "Lufttemperatur;momentanvärde, 1 gång/tim;degree celsius",
            "Tidsperiod (fr.o.m);Tidsperiod (t.o.m);Höjd (meter över havet);Latitud;Longitud",
            "2026-10-18 05:00:01;2026-10-18 06:00:00;22.0;56.0313;12.7616",
            "Datum;Tid (UTC);Lufttemperatur;Kvalitet",
            "2026-10-18;06:00:00;7.4;G",
        ]
    )
    client, requested = _make_client(
        _graph(value_links=[csv_link]), texts={VALUE_CSV_URL: text}
    )

    value = client.by_station_name("Helsingborg", "1", "latest-hour")

    assert requested[-1] == VALUE_CSV_URL
    assert value.readings[0].value == "7.4"
    assert value.link[0].href == VALUE_CSV_URL
    assert client.last_value_payload == text


def test_value_without_json_or_csv_link_raises() -> None:
    xml_link = {"rel": "data", "type": "application/xml", "href": f"{BASE_URL}/data.xml"}
    client, _ = _make_client(_graph(value_links=[xml_link]))
    with pytest.raises(NoMatchingLinkError) as excinfo:
        client.by_station_name("Helsingborg", "1", "latest-hour")
    assert excinfo.value.content_types == ("application/json", "text/plain")


def test_payload_that_does_not_match_model_raises_decode_error() -> None:
    graph = _graph()
    graph[PARAMETER_URL] = {"station": "not a list"}
    client, _ = _make_client(graph)
    with pytest.raises(DecodeError, match="does not match Parameter"):
        client.by_station_name("Helsingborg", "1", "latest-hour")


def test_transport_errors_propagate_with_status() -> None:
    client = SMHIObservationsClient(
        settings=_make_settings(),
        logger=logging.getLogger("test_observation_traversal"),
    )
    client._client.close()
    client._client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
    )
    with pytest.raises(TransportError) as excinfo:
        client.fetch_service()
    assert excinfo.value.status_code == 503


def test_csv_body_must_be_utf8() -> None:
    client = SMHIObservationsClient(
        settings=_make_settings(),
        logger=logging.getLogger("test_observation_traversal"),
    )
    client._client.close()
    client._client = httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"\xff\xfe\xfa"))
    )
    with pytest.raises(DecodeError, match="UTF-8"):
        client._request_text(VALUE_CSV_URL, context="value csv")
