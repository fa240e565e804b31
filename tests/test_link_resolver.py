"""Link selection by content type."""

from __future__ import annotations

import pytest

from smhi_weather.exceptions import NoMatchingLinkError
from smhi_weather.observations.links import has_link, resolve_link, select_link
from smhi_weather.observations.models import Link


def _links() -> list[Link]:
    return [
        Link(rel="data", type="application/xml", href="https://example.test/a.xml"),
        Link(rel="data", type="application/json", href="https://example.test/first.json"),
        Link(rel="alternate", type="application/json", href="https://example.test/second.json"),
        Link(rel="data", type="text/plain", href="https://example.test/a.csv"),
    ]


def test_first_matching_link_in_declaration_order_wins() -> None:
    assert resolve_link(_links(), "application/json") == "https://example.test/first.json"
    assert select_link(_links(), "text/plain").rel == "data"


def test_no_matching_link_raises() -> None:
    with pytest.raises(NoMatchingLinkError) as excinfo:
        resolve_link(_links(), "application/atom+xml")
    assert excinfo.value.content_types == ("application/atom+xml",)


def test_empty_links_never_match() -> None:
    assert has_link([], "application/json") is False
    with pytest.raises(NoMatchingLinkError):
        resolve_link([], "application/json")


def test_has_link_is_exact_match() -> None:
    links = _links()
    assert has_link(links, "text/plain") is True
    assert has_link(links, "text/csv") is False
    assert has_link(links, "Application/JSON") is False
