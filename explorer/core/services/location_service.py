"""Resolve free-text place names to stored, geocoded locations."""
from __future__ import annotations

import logging
from typing import Optional

from explorer.core.abstractions import Location, ProviderClient
from explorer.core.exceptions import ProviderError, UpstreamError
from explorer.core.health import HealthRegistry
from explorer.core.locks import KeyedLocks
from explorer.core.models import Store
from explorer.core.normalizers import normalize_location


logger = logging.getLogger(__name__)


class LocationResolver:
    """Cache-or-fetch over the geocoding provider.

    Locations never expire: once a query has been geocoded the stored row is
    returned for every later request with the same query string.
    """

    def __init__(
        self,
        store: Store,
        geocoder: ProviderClient,
        health: Optional[HealthRegistry] = None,
    ) -> None:
        self._store = store
        self._geocoder = geocoder
        self._health = health
        self._locks = KeyedLocks()

    def resolve(self, query: str) -> Location:
        if not query or not query.strip():
            raise ValueError("query must be a non-empty string")

        stored = self._store.find_location(query)
        if stored is not None:
            logger.debug("Location %r served from store", query)
            return stored

        with self._locks.hold(query):
            # Another request may have stored it while we waited.
            stored = self._store.find_location(query)
            if stored is not None:
                return stored
            return self._geocode(query)

    def _geocode(self, query: str) -> Location:
        try:
            payload = self._geocoder.fetch(query)
        except UpstreamError:
            self._record_error()
            raise
        results = self._geocoder.items(payload)
        if not results:
            logger.warning("Geocoder returned no results for %r", query)
            raise ProviderError(f"no geocoding results for {query!r}")

        location = normalize_location(query, results[0])
        saved = self._store.insert_location(location)
        logger.info("Location %r geocoded and stored with id %s", query, saved.id)
        return saved

    def _record_error(self) -> None:
        if self._health is not None:
            self._health.record_provider_error(self._geocoder.name)


__all__ = ["LocationResolver"]
