"""Map raw provider records onto the stored record types.

Each normalizer receives the ``created_time`` of its batch instead of reading
the clock itself, so every record of one fetch carries the same timestamp.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from explorer.core.abstractions import Location, MeetUp, Movie, Restaurant, Trail, Weather
from explorer.core.exceptions import NormalizationError
from explorer.core.schemas import (
    DarkSkyDay,
    GeocodeResult,
    HikingTrail,
    MeetupGroup,
    TmdbMovie,
    YelpBusiness,
    validate_payload,
)

TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p/w370_and_h556_bestv2/"
CALENDAR_DATE_FORMAT = "%a %b %d %Y"


def calendar_date(value: datetime) -> str:
    """Render a timestamp as ``Mon Jan 01 2024`` (no time of day)."""
    return value.strftime(CALENDAR_DATE_FORMAT)


def _epoch_to_calendar_date(seconds: int) -> str:
    return calendar_date(datetime.fromtimestamp(int(seconds), tz=timezone.utc))


def normalize_location(query: str, raw: Mapping[str, Any]) -> Location:
    result = validate_payload(GeocodeResult, raw, "location")
    return Location(
        search_query=query,
        formatted_query=result.formatted_address,
        latitude=result.geometry.location.lat,
        longitude=result.geometry.location.lng,
    )


def normalize_weather(raw: Mapping[str, Any], created_time: datetime) -> Weather:
    day = validate_payload(DarkSkyDay, raw, "weather")
    return Weather(
        forecast=day.summary,
        time=_epoch_to_calendar_date(day.time),
        created_time=created_time,
    )


def normalize_restaurant(raw: Mapping[str, Any], created_time: datetime) -> Restaurant:
    business = validate_payload(YelpBusiness, raw, "restaurants")
    return Restaurant(
        name=business.name,
        image_url=business.image_url,
        price=business.price,
        rating=business.rating,
        url=business.url,
        created_time=created_time,
    )


def normalize_movie(raw: Mapping[str, Any], created_time: datetime) -> Movie:
    movie = validate_payload(TmdbMovie, raw, "movies")
    # A missing poster yields ".../None"; the URL is passed through as built.
    return Movie(
        title=movie.title,
        overview=movie.overview,
        average_votes=movie.vote_average,
        total_votes=movie.vote_count,
        image_url=f"{TMDB_IMAGE_BASE}{movie.poster_path}",
        popularity=movie.popularity,
        released_on=movie.release_date,
        created_time=created_time,
    )


def normalize_meetup(raw: Mapping[str, Any], created_time: datetime) -> MeetUp:
    group = validate_payload(MeetupGroup, raw, "meetups")
    return MeetUp(
        link=group.link,
        name=group.name,
        creation_date=_epoch_to_calendar_date(group.created),
        host=group.organizer.name,
        created_time=created_time,
    )


def _condition_time(value: Optional[str]) -> Optional[str]:
    # conditionDate is optional; anything unreadable leaves condition_time empty.
    if not value:
        return None
    try:
        return calendar_date(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def normalize_trail(raw: Mapping[str, Any], created_time: datetime) -> Trail:
    trail = validate_payload(HikingTrail, raw, "trails")
    return Trail(
        name=trail.name,
        location=trail.location,
        length=trail.length,
        stars=trail.stars,
        star_votes=trail.starVotes,
        summary=trail.summary,
        trail_url=trail.url,
        conditions=trail.conditionStatus,
        condition_date=trail.conditionDate,
        condition_time=_condition_time(trail.conditionDate),
        created_time=created_time,
    )


NORMALIZERS: Dict[str, Callable[[Mapping[str, Any], datetime], Any]] = {
    "weather": normalize_weather,
    "restaurants": normalize_restaurant,
    "movies": normalize_movie,
    "meetups": normalize_meetup,
    "trails": normalize_trail,
}


def normalize_batch(domain: str, items: Iterable[Mapping[str, Any]], now: datetime) -> List[Any]:
    """Normalize a whole provider response or fail on its first bad item."""
    normalizer = NORMALIZERS[domain]
    records = []
    for index, raw in enumerate(items):
        try:
            records.append(normalizer(raw, now))
        except NormalizationError as exc:
            raise exc.at(index) from exc
    return records


__all__ = [
    "TMDB_IMAGE_BASE",
    "NORMALIZERS",
    "calendar_date",
    "normalize_location",
    "normalize_weather",
    "normalize_restaurant",
    "normalize_movie",
    "normalize_meetup",
    "normalize_trail",
    "normalize_batch",
]
