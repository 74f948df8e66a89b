"""Pydantic schemas for the raw payloads returned by external providers."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from explorer.core.exceptions import NormalizationError

__all__ = [
    "GeocodeResult",
    "DarkSkyDay",
    "YelpBusiness",
    "TmdbMovie",
    "MeetupGroup",
    "HikingTrail",
    "validate_payload",
]

ModelT = TypeVar("ModelT", bound=BaseModel)


class _ProviderPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class LatLng(_ProviderPayload):
    lat: float
    lng: float


class Geometry(_ProviderPayload):
    location: LatLng


class GeocodeResult(_ProviderPayload):
    formatted_address: Optional[str] = None
    geometry: Geometry


class DarkSkyDay(_ProviderPayload):
    time: int
    summary: Optional[str] = None


class YelpBusiness(_ProviderPayload):
    name: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[str] = None
    rating: Optional[float] = None
    url: Optional[str] = None


class TmdbMovie(_ProviderPayload):
    title: Optional[str] = None
    overview: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    poster_path: Optional[str] = None
    popularity: Optional[float] = None
    release_date: Optional[str] = None


class MeetupOrganizer(_ProviderPayload):
    name: str


class MeetupGroup(_ProviderPayload):
    link: Optional[str] = None
    name: Optional[str] = None
    created: int
    organizer: MeetupOrganizer


class HikingTrail(_ProviderPayload):
    name: Optional[str] = None
    location: Optional[str] = None
    length: Optional[float] = None
    stars: Optional[float] = None
    starVotes: Optional[int] = None
    summary: Optional[str] = None
    url: Optional[str] = None
    conditionStatus: Optional[str] = None
    conditionDate: Optional[str] = None


def validate_payload(model: Type[ModelT], raw: Any, domain: str) -> ModelT:
    """Validate ``raw`` against ``model`` and report the first bad field."""
    if not isinstance(raw, Mapping):
        raise NormalizationError(domain, "<record>")
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        errors = exc.errors()
        location = errors[0]["loc"] if errors else ()
        field = ".".join(str(part) for part in location) or "<record>"
        raise NormalizationError(domain, field) from exc
