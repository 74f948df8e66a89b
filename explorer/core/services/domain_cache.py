"""Cache-or-fetch orchestration shared by every provider-backed domain."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional, Type

from explorer.core.abstractions import (
    DomainRecord,
    Location,
    MeetUp,
    Movie,
    ProviderClient,
    Restaurant,
    Trail,
    Weather,
    utcnow,
)
from explorer.core.exceptions import NormalizationError, UpstreamError
from explorer.core.health import HealthRegistry
from explorer.core.locks import KeyedLocks
from explorer.core.models import Store
from explorer.core.normalizers import normalize_batch
from explorer.core.staleness import Fresh, Stale, classify


RECORD_TYPES_BY_DOMAIN: Mapping[str, Type] = {
    "weather": Weather,
    "restaurants": Restaurant,
    "movies": Movie,
    "meetups": MeetUp,
    "trails": Trail,
}


@dataclass(frozen=True)
class Domain:
    """Everything that differs between two domain caches."""

    name: str
    record_type: Type
    provider: ProviderClient

    @property
    def table(self) -> str:
        return self.record_type.table

    @classmethod
    def for_provider(cls, name: str, provider: ProviderClient) -> "Domain":
        return cls(name=name, record_type=RECORD_TYPES_BY_DOMAIN[name], provider=provider)


class DomainCacheOrchestrator:
    """Serve stored records for a location or replace them with a fresh fetch.

    Stored rows younger than the domain threshold are returned untouched.
    Otherwise the provider is called, the whole response is normalized with a
    single ``created_time`` and persisted. A stale batch is swapped for the new
    one inside one transaction, after the fetch succeeded, so a failing
    provider leaves the stored rows as they were.
    """

    def __init__(
        self,
        domain: Domain,
        store: Store,
        *,
        clock: Callable[[], datetime] = utcnow,
        health: Optional[HealthRegistry] = None,
    ) -> None:
        self.domain = domain
        self._store = store
        self._clock = clock
        self._health = health
        self._locks = KeyedLocks()
        self._log = logging.getLogger(f"{self.__class__.__name__}.{domain.name}")

    def get_records(self, location: Location) -> List[DomainRecord]:
        if location.id is None:
            raise ValueError("location must be stored before its records are requested")

        with self._locks.hold(location.id):
            rows = self._store.query(self.domain.table, location.id)
            state = classify(self.domain.name, rows, self._clock())

            if isinstance(state, Fresh):
                self._log.debug("Serving %d stored rows for location %s", len(rows), location.id)
                self._record("hit")
                return [self.domain.record_type.from_row(row) for row in state.rows]

            records = self._fetch(location)
            new_rows = [record.to_row(location.id) for record in records]
            if isinstance(state, Stale):
                self._log.info(
                    "Batch for location %s is %.1f minutes old, refreshing", location.id, state.age_minutes
                )
                ids = self._store.replace_batch(self.domain.table, location.id, new_rows)
                self._record("refresh")
            else:
                self._log.info("No stored batch for location %s, fetching", location.id)
                ids = self._store.insert_batch(self.domain.table, new_rows)
                self._record("miss")

        for record, record_id in zip(records, ids):
            record.id = record_id
            record.location_id = location.id
        return records

    def _fetch(self, location: Location) -> List[DomainRecord]:
        provider = self.domain.provider
        try:
            payload = provider.fetch(location)
            items = provider.items(payload)
            return normalize_batch(self.domain.name, items, self._clock())
        except UpstreamError:
            self._record_error()
            raise
        except NormalizationError as exc:
            self._log.error("Rejecting %s batch for location %s: %s", self.domain.name, location.id, exc)
            self._record_error()
            raise

    def _record(self, outcome: str) -> None:
        if self._health is not None:
            self._health.record_cache_outcome(self.domain.name, outcome)

    def _record_error(self) -> None:
        if self._health is not None:
            self._health.record_provider_error(self.domain.provider.name)


def build_orchestrators(
    providers: Mapping[str, ProviderClient],
    store: Store,
    *,
    clock: Callable[[], datetime] = utcnow,
    health: Optional[HealthRegistry] = None,
) -> Dict[str, DomainCacheOrchestrator]:
    return {
        name: DomainCacheOrchestrator(Domain.for_provider(name, provider), store, clock=clock, health=health)
        for name, provider in providers.items()
    }


__all__ = [
    "Domain",
    "DomainCacheOrchestrator",
    "RECORD_TYPES_BY_DOMAIN",
    "build_orchestrators",
]
