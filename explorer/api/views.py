"""REST API views for locations and their cached provider data."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from explorer.core.exceptions import ExplorerError
from explorer.core.health import HealthRegistry
from explorer.core.models import Store
from explorer.core.providers import (
    DarkSkyProvider,
    GoogleGeocodeProvider,
    HikingProjectProvider,
    MeetupProvider,
    RequestConfig,
    TmdbProvider,
    YelpProvider,
)
from explorer.core.services import DomainCacheOrchestrator, LocationResolver, build_orchestrators


logger = logging.getLogger(__name__)

# URL segment -> domain name
DOMAIN_ROUTES: Dict[str, str] = {
    "weather": "weather",
    "yelp": "restaurants",
    "movies": "movies",
    "meetups": "meetups",
    "trails": "trails",
}

FAILURE_DETAIL = "ERROR. Please try again."


@lru_cache(maxsize=1)
def get_health_registry() -> HealthRegistry:
    return HealthRegistry()


@lru_cache(maxsize=1)
def get_store() -> Store:
    return Store.from_url(settings.EXPLORER_DATABASE_URL)


def _provider_kwargs() -> Dict[str, Any]:
    return {"request_config": RequestConfig(timeout=settings.PROVIDER_TIMEOUT)}


@lru_cache(maxsize=1)
def get_location_resolver() -> LocationResolver:
    keys = settings.PROVIDER_API_KEYS
    geocoder = GoogleGeocodeProvider(api_key=keys["geocode"], **_provider_kwargs())
    return LocationResolver(get_store(), geocoder, health=get_health_registry())


@lru_cache(maxsize=1)
def get_orchestrators() -> Dict[str, DomainCacheOrchestrator]:
    keys = settings.PROVIDER_API_KEYS
    providers = {
        "weather": DarkSkyProvider(api_key=keys["weather"], **_provider_kwargs()),
        "restaurants": YelpProvider(api_key=keys["restaurants"], **_provider_kwargs()),
        "movies": TmdbProvider(api_key=keys["movies"], **_provider_kwargs()),
        "meetups": MeetupProvider(api_key=keys["meetups"], **_provider_kwargs()),
        "trails": HikingProjectProvider(api_key=keys["trails"], **_provider_kwargs()),
    }
    return build_orchestrators(providers, get_store(), health=get_health_registry())


def reset_services() -> None:
    """Drop the cached service graph so the next request rebuilds it."""
    for factory in (get_orchestrators, get_location_resolver, get_store, get_health_registry):
        factory.cache_clear()


def fetch_domain_records(query: str, domain: str) -> List[Dict[str, Any]]:
    location = get_location_resolver().resolve(query)
    records = get_orchestrators()[domain].get_records(location)
    return [record.as_payload() for record in records]


def _query_param(request) -> Optional[str]:
    value = request.query_params.get("data", "")
    value = value.strip()
    return value or None


def _bad_request() -> Response:
    return Response({"detail": "the data query parameter is required"}, status=status.HTTP_400_BAD_REQUEST)


def _failure() -> Response:
    return Response({"detail": FAILURE_DETAIL}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class LocationView(APIView):
    """Resolve a place name to its stored coordinates."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return the location for the ``data`` query parameter."""
        query = _query_param(request)
        if query is None:
            return _bad_request()
        try:
            location = get_location_resolver().resolve(query)
        except ExplorerError:
            logger.exception("Location lookup failed for %r", query)
            return _failure()
        return Response(location.as_payload(), status=status.HTTP_200_OK)


class DomainRecordsView(APIView):
    """List the cached or freshly fetched records of one domain."""

    permission_classes = [AllowAny]
    domain: Optional[str] = None

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return the records for the location named by ``data``."""
        query = _query_param(request)
        if query is None:
            return _bad_request()
        try:
            payload = fetch_domain_records(query, self.domain)
        except ExplorerError:
            logger.exception("%s lookup failed for %r", self.domain, query)
            return _failure()
        return Response(payload, status=status.HTTP_200_OK)


class HealthView(APIView):
    """Expose cache counters and provider error counters.

    ``?drain=1`` returns the provider error counters and resets them, so a
    poller only sees the failures since its previous call.
    """

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        registry = get_health_registry()
        payload = registry.snapshot()
        if request.query_params.get("drain", "").lower() in ("1", "true", "yes"):
            payload["providers"] = registry.drain_provider_errors()
        return Response(payload, status=status.HTTP_200_OK)
