"""Meetup group search client."""
from __future__ import annotations

from typing import Any, Dict, List

from explorer.core.abstractions import Location
from explorer.core.providers.base import HttpProvider


class MeetupProvider(HttpProvider):
    name = "meetups"
    base_url = "https://api.meetup.com/find/groups"
    page_size = 20

    def __init__(self, *, api_key: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key

    def fetch(self, location: Location) -> Any:
        params = {
            "sign": "true",
            "photo-host": "public",
            "location": location.search_query,
            "page": self.page_size,
            "key": self.api_key,
        }
        return self._get_json(self.base_url, params=params)

    def items(self, payload: Any) -> List[Dict[str, Any]]:
        # The endpoint answers with a bare JSON array.
        return self._list_at(payload)


__all__ = ["MeetupProvider"]
