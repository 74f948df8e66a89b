"""Google Geocoding API client."""
from __future__ import annotations

from typing import Any, Dict, List

from explorer.core.providers.base import HttpProvider


class GoogleGeocodeProvider(HttpProvider):
    name = "geocode"
    base_url = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, *, api_key: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    def fetch(self, query: str) -> Any:
        return self._get_json(self.base_url, params={"address": query, "key": self.api_key})

    def items(self, payload: Any) -> List[Dict[str, Any]]:
        return self._list_at(payload, "results")


__all__ = ["GoogleGeocodeProvider"]
