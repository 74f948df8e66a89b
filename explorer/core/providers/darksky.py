"""Dark Sky daily forecast client."""
from __future__ import annotations

from typing import Any, Dict, List

from explorer.core.abstractions import Location
from explorer.core.providers.base import HttpProvider


class DarkSkyProvider(HttpProvider):
    name = "weather"
    base_url = "https://api.darksky.net/forecast"

    def __init__(self, *, api_key: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    def fetch(self, location: Location) -> Any:
        url = f"{self.base_url}/{self.api_key}/{location.latitude},{location.longitude}"
        return self._get_json(url)

    def items(self, payload: Any) -> List[Dict[str, Any]]:
        return self._list_at(payload, "daily", "data")


__all__ = ["DarkSkyProvider"]
