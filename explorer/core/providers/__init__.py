"""HTTP clients for the external data providers."""
from explorer.core.providers.base import HttpProvider, RequestConfig
from explorer.core.providers.darksky import DarkSkyProvider
from explorer.core.providers.geocode import GoogleGeocodeProvider
from explorer.core.providers.hikingproject import HikingProjectProvider
from explorer.core.providers.meetup import MeetupProvider
from explorer.core.providers.tmdb import TmdbProvider
from explorer.core.providers.yelp import YelpProvider

__all__ = [
    "HttpProvider",
    "RequestConfig",
    "DarkSkyProvider",
    "GoogleGeocodeProvider",
    "HikingProjectProvider",
    "MeetupProvider",
    "TmdbProvider",
    "YelpProvider",
]
