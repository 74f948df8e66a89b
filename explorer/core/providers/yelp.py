"""Yelp Fusion business search client."""
from __future__ import annotations

from typing import Any, Dict, List

from explorer.core.abstractions import Location
from explorer.core.providers.base import HttpProvider


class YelpProvider(HttpProvider):
    name = "restaurants"
    base_url = "https://api.yelp.com/v3/businesses/search"

    def __init__(self, *, api_key: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    def fetch(self, location: Location) -> Any:
        params = {"latitude": location.latitude, "longitude": location.longitude}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        return self._get_json(self.base_url, params=params, headers=headers)

    def items(self, payload: Any) -> List[Dict[str, Any]]:
        return self._list_at(payload, "businesses")


__all__ = ["YelpProvider"]
