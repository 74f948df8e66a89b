"""Per-domain staleness thresholds and cache state classification."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Sequence, Union

from explorer.core.abstractions import parse_timestamp

# Minutes a stored batch stays usable.
STALENESS_THRESHOLDS: Mapping[str, int] = {
    "weather": 30,
    "restaurants": 7 * 24 * 60,
    "movies": 24 * 60,
    "meetups": 24 * 60,
    "trails": 28 * 24 * 60,
}


def is_stale(domain: str, age_minutes: float) -> bool:
    """Return True when a batch of ``age_minutes`` must be refreshed.

    An age exactly equal to the threshold is still fresh.
    """
    return age_minutes > STALENESS_THRESHOLDS[domain]


def age_in_minutes(created_time: Union[str, datetime], now: datetime) -> float:
    return (now - parse_timestamp(created_time)).total_seconds() / 60


@dataclass(frozen=True)
class Miss:
    """No stored batch for the location."""


@dataclass(frozen=True)
class Fresh:
    rows: Sequence[Mapping[str, Any]]


@dataclass(frozen=True)
class Stale:
    rows: Sequence[Mapping[str, Any]]
    age_minutes: float


CacheState = Union[Miss, Fresh, Stale]


def classify(domain: str, rows: Sequence[Mapping[str, Any]], now: datetime) -> CacheState:
    """Decide what to do with the stored rows of one location.

    Every row of a batch shares its fetch time, so the first row stands for
    the whole batch.
    """
    if not rows:
        return Miss()
    age = age_in_minutes(rows[0]["created_time"], now)
    if is_stale(domain, age):
        return Stale(rows=rows, age_minutes=age)
    return Fresh(rows=rows)


__all__ = [
    "STALENESS_THRESHOLDS",
    "is_stale",
    "age_in_minutes",
    "classify",
    "CacheState",
    "Miss",
    "Fresh",
    "Stale",
]
