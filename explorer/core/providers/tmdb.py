"""The Movie Database search client.

Movies are searched by the location's search query, not by
coordinates.
"""
from __future__ import annotations

from typing import Any, Dict, List

from explorer.core.abstractions import Location
from explorer.core.providers.base import HttpProvider


class TmdbProvider(HttpProvider):
    name = "movies"
    base_url = "https://api.themoviedb.org/3/search/movie"

    def __init__(self, *, api_key: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    def fetch(self, location: Location) -> Any:
        params = {"api_key": self.api_key, "query": location.search_query}
        return self._get_json(self.base_url, params=params)

    def items(self, payload: Any) -> List[Dict[str, Any]]:
        return self._list_at(payload, "results")


__all__ = ["TmdbProvider"]
