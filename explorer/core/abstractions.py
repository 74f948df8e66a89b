"""Core abstractions for the explorer domain."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Protocol, Tuple, Union


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class Location:
    """Geocoded search query. Immutable once stored."""

    search_query: str
    formatted_query: Optional[str]
    latitude: float
    longitude: float
    id: Optional[int] = None

    table: ClassVar[str] = "locations"

    def to_row(self) -> Dict[str, Any]:
        return {
            "search_query": self.search_query,
            "formatted_query": self.formatted_query,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Location":
        return cls(
            search_query=row["search_query"],
            formatted_query=row["formatted_query"],
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            id=row["id"],
        )

    def as_payload(self) -> Dict[str, Any]:
        return asdict(self)


class _StoredRecord:
    """Column mapping shared by every domain record.

    ``columns`` pairs each attribute with its SQL column explicitly; the
    attribute order of the dataclass never decides column alignment.
    """

    table: ClassVar[str]
    columns: ClassVar[Tuple[Tuple[str, str], ...]]

    created_time: datetime
    id: Optional[int]
    location_id: Optional[int]

    def to_row(self, location_id: int) -> Dict[str, Any]:
        row = {column: getattr(self, attribute) for attribute, column in self.columns}
        row["created_time"] = format_timestamp(self.created_time)
        row["location_id"] = location_id
        return row

    @classmethod
    def from_row(cls, row: Mapping[str, Any]):
        values = {attribute: row[column] for attribute, column in cls.columns}
        return cls(
            **values,
            created_time=parse_timestamp(row["created_time"]),
            id=row["id"],
            location_id=row["location_id"],
        )

    def as_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["created_time"] = format_timestamp(self.created_time)
        return payload


@dataclass
class Weather(_StoredRecord):
    forecast: Optional[str]
    time: str
    created_time: datetime
    id: Optional[int] = None
    location_id: Optional[int] = None

    table: ClassVar[str] = "weathers"
    columns: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("forecast", "forecast"),
        ("time", "time"),
    )


@dataclass
class Restaurant(_StoredRecord):
    name: Optional[str]
    image_url: Optional[str]
    price: Optional[str]
    rating: Optional[float]
    url: Optional[str]
    created_time: datetime
    id: Optional[int] = None
    location_id: Optional[int] = None

    table: ClassVar[str] = "yelps"
    columns: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("name", "name"),
        ("image_url", "image_url"),
        ("price", "price"),
        ("rating", "rating"),
        ("url", "url"),
    )


@dataclass
class Movie(_StoredRecord):
    title: Optional[str]
    overview: Optional[str]
    average_votes: Optional[float]
    total_votes: Optional[int]
    image_url: str
    popularity: Optional[float]
    released_on: Optional[str]
    created_time: datetime
    id: Optional[int] = None
    location_id: Optional[int] = None

    table: ClassVar[str] = "movies"
    columns: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("title", "title"),
        ("overview", "overview"),
        ("average_votes", "average_votes"),
        ("total_votes", "total_votes"),
        ("image_url", "image_url"),
        ("popularity", "popularity"),
        ("released_on", "release_on"),
    )


@dataclass
class MeetUp(_StoredRecord):
    link: Optional[str]
    name: Optional[str]
    creation_date: str
    host: str
    created_time: datetime
    id: Optional[int] = None
    location_id: Optional[int] = None

    table: ClassVar[str] = "meetups"
    columns: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("link", "link"),
        ("name", "name"),
        ("creation_date", "creation_date"),
        ("host", "host"),
    )


@dataclass
class Trail(_StoredRecord):
    name: Optional[str]
    location: Optional[str]
    length: Optional[float]
    stars: Optional[float]
    star_votes: Optional[int]
    summary: Optional[str]
    trail_url: Optional[str]
    conditions: Optional[str]
    condition_date: Optional[str]
    condition_time: Optional[str]
    created_time: datetime
    id: Optional[int] = None
    location_id: Optional[int] = None

    table: ClassVar[str] = "trails"
    columns: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("name", "name"),
        ("location", "location"),
        ("length", "length"),
        ("stars", "stars"),
        ("star_votes", "star_votes"),
        ("summary", "summary"),
        ("trail_url", "trail_url"),
        ("conditions", "conditions"),
        ("condition_date", "condition_date"),
        ("condition_time", "condition_time"),
    )


DomainRecord = Union[Weather, Restaurant, Movie, MeetUp, Trail]

RECORD_TYPES: Tuple[type, ...] = (Weather, Restaurant, Movie, MeetUp, Trail)


class ProviderClient(Protocol):
    """An external API returning raw JSON for a location or a query string."""

    name: str

    def fetch(self, target: Any) -> Any:
        """Return the raw decoded JSON payload."""
        ...

    def items(self, payload: Any) -> List[Dict[str, Any]]:
        """Extract the list of raw records from a payload."""
        ...


class Normalizer(Protocol):
    def __call__(self, raw: Mapping[str, Any], created_time: datetime) -> DomainRecord:
        ...


__all__ = [
    "Location",
    "Weather",
    "Restaurant",
    "Movie",
    "MeetUp",
    "Trail",
    "DomainRecord",
    "RECORD_TYPES",
    "ProviderClient",
    "Normalizer",
    "utcnow",
    "format_timestamp",
    "parse_timestamp",
]
