"""Hiking Project trail search client."""
from __future__ import annotations

from typing import Any, Dict, List

from explorer.core.abstractions import Location
from explorer.core.providers.base import HttpProvider


class HikingProjectProvider(HttpProvider):
    name = "trails"
    base_url = "https://www.hikingproject.com/data/get-trails"
    max_distance = 10

    def __init__(self, *, api_key: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    def fetch(self, location: Location) -> Any:
        params = {
            "key": self.api_key,
            "lat": location.latitude,
            "lon": location.longitude,
            "maxDistance": self.max_distance,
        }
        return self._get_json(self.base_url, params=params)

    def items(self, payload: Any) -> List[Dict[str, Any]]:
        return self._list_at(payload, "trails")


__all__ = ["HikingProjectProvider"]
