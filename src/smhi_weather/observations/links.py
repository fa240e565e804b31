"""Content-type based link selection for hypermedia nodes."""

from __future__ import annotations

from collections.abc import Iterable

from ..exceptions import NoMatchingLinkError
from .models import Link

JSON_CONTENT_TYPE = "application/json"
CSV_CONTENT_TYPE = "text/plain"


def select_link(links: Iterable[Link], content_type: str) -> Link:
    """Return the first link with `content_type`, in declaration order."""
    for link in links:
        if link.type == content_type:
            return link
    raise NoMatchingLinkError((content_type,))


def resolve_link(links: Iterable[Link], content_type: str) -> str:
    """Return the href of the first link with `content_type`."""
    return select_link(links, content_type).href


def has_link(links: Iterable[Link], content_type: str) -> bool:
    return any(link.type == content_type for link in links)
