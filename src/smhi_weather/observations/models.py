"""Wire models for the SMHI observations (metobs) link graph.

The API nests service -> resource (parameter) -> station -> period -> data
-> value; every node carries `link` entries pointing at the next hop.
Timestamps on the wire are epoch milliseconds.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _from_epoch_millis(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    return value


EpochMillis = Annotated[datetime, BeforeValidator(_from_epoch_millis)]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in km."""
    r = 6371.0
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dp = math.radians(lat2 - lat1)
    dl = math.radians(lon2 - lon1)
    a = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * r * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Link(_WireModel):
    """One hypermedia link: relation, content type and target."""

    rel: str = ""
    type: str
    href: str


class GeoBox(_WireModel):
    min_latitude: float = Field(alias="minLatitude")
    min_longitude: float = Field(alias="minLongitude")
    max_latitude: float = Field(alias="maxLatitude")
    max_longitude: float = Field(alias="maxLongitude")


class Resource(_WireModel):
    """Service-level entry for one observed parameter."""

    key: str
    updated: EpochMillis | None = None
    title: str = ""
    summary: str = ""
    geo_box: GeoBox | None = Field(default=None, alias="geoBox")
    link: list[Link] = Field(default_factory=list)


class Service(_WireModel):
    """Observations service root."""

    key: str = ""
    updated: EpochMillis | None = None
    title: str = ""
    summary: str = ""
    link: list[Link] = Field(default_factory=list)
    resource: list[Resource] = Field(default_factory=list)

    def find_resource(self, key: str) -> Resource | None:
        return next((item for item in self.resource if item.key == key), None)


class Station(_WireModel):
    name: str
    owner: str = ""
    owner_category: str = Field(default="", alias="ownerCategory")
    id: float | None = None
    height: float = 0.0
    latitude: float
    longitude: float
    active: bool = False
    from_: EpochMillis | None = Field(default=None, alias="from")
    to: EpochMillis | None = None
    key: str = ""
    updated: EpochMillis | None = None
    title: str = ""
    summary: str = ""
    link: list[Link] = Field(default_factory=list)

    def distance_km(self, latitude: float, longitude: float) -> float:
        return haversine_km(latitude, longitude, self.latitude, self.longitude)


class StationSet(_WireModel):
    key: str
    updated: EpochMillis | None = None
    title: str = ""
    summary: str = ""
    link: list[Link] = Field(default_factory=list)


class Parameter(_WireModel):
    """Resource body: one parameter and every station reporting it."""

    key: str
    updated: EpochMillis | None = None
    title: str = ""
    summary: str = ""
    value_type: str = Field(default="", alias="valueType")
    station: list[Station] = Field(default_factory=list)
    station_set: list[StationSet] | None = Field(default=None, alias="stationSet")

    @property
    def active_stations(self) -> list[Station]:
        return [station for station in self.station if station.active]

    def station_named(self, name: str) -> Station | None:
        """First active station whose name contains `name`, ignoring case."""
        needle = name.lower()
        return next(
            (station for station in self.active_stations if needle in station.name.lower()),
            None,
        )

    def closest_station(self, latitude: float, longitude: float) -> Station | None:
        """Active station nearest to the point; the first one wins ties."""
        closest: Station | None = None
        closest_distance = math.inf
        for station in self.active_stations:
            distance = station.distance_km(latitude, longitude)
            if distance < closest_distance:
                closest = station
                closest_distance = distance
        return closest


class Position(_WireModel):
    from_: EpochMillis = Field(alias="from")
    to: EpochMillis
    height: float
    latitude: float
    longitude: float


class Period(_WireModel):
    key: str
    updated: EpochMillis | None = None
    title: str = ""
    summary: str = ""
    link: list[Link] = Field(default_factory=list)


class StationParameter(_WireModel):
    """Station body: available periods for one station and parameter."""

    key: str
    updated: EpochMillis | None = None
    title: str = ""
    owner: str = ""
    owner_category: str = Field(default="", alias="ownerCategory")
    active: bool = False
    summary: str = ""
    from_: EpochMillis | None = Field(default=None, alias="from")
    to: EpochMillis | None = None
    position: list[Position] = Field(default_factory=list)
    period: list[Period] = Field(default_factory=list)
    link: list[Link] = Field(default_factory=list)

    def find_period(self, key: str) -> Period | None:
        return next((item for item in self.period if item.key == key), None)


class PeriodData(_WireModel):
    key: str | None = None
    updated: EpochMillis | None = None
    title: str = ""
    summary: str = ""
    link: list[Link] = Field(default_factory=list)


class PeriodDetails(_WireModel):
    key: str
    updated: EpochMillis | None = None
    title: str = ""
    summary: str = ""
    from_: EpochMillis | None = Field(default=None, alias="from")
    to: EpochMillis | None = None
    link: list[Link] = Field(default_factory=list)
    data: list[PeriodData] = Field(default_factory=list)


class Reading(_WireModel):
    """One observation; `quality` is SMHI's opaque single-letter code."""

    date: EpochMillis
    value: str
    quality: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _number_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class ValueParameter(_WireModel):
    key: str = ""
    name: str
    summary: str = ""
    unit: str = ""


class ValueStation(_WireModel):
    key: str = ""
    name: str
    owner: str = ""
    owner_category: str = Field(default="", alias="ownerCategory")
    height: float = 0.0


class ValuePeriod(_WireModel):
    key: str = ""
    from_: EpochMillis = Field(alias="from")
    to: EpochMillis
    summary: str = ""
    sampling: str = ""


class ObservationValue(_WireModel):
    """Final hop: readings plus the parameter/station/period they belong to."""

    readings: list[Reading] = Field(default_factory=list, alias="value")
    updated: EpochMillis
    parameter: ValueParameter
    station: ValueStation
    period: ValuePeriod
    position: list[Position] = Field(default_factory=list)
    link: list[Link] = Field(default_factory=list)

    @field_validator("readings", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def latest(self) -> Reading | None:
        return self.readings[-1] if self.readings else None
