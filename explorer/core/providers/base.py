from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from requests import Response

from explorer.core.exceptions import NormalizationError, UpstreamError


@dataclass
class RequestConfig:
    timeout: float = 5.0


class HttpProvider:
    """Base class for the external APIs; adds timeouts and error mapping."""

    name = "provider"
    base_url = ""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.base_url = base_url or self.base_url
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(self.__class__.__name__)
        self._testing_mode = os.environ.get("TESTING_MODE", "0") == "1"

    def items(self, payload: Any) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def _handle_response(self, response: Response) -> Response:
        if response.status_code >= 400:
            self._log.error("Provider %s returned %s: %s", self.name, response.status_code, response.text[:200])
            raise UpstreamError(f"{self.name}: HTTP {response.status_code}")
        return response

    def _request(self, method: str, url: str, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request to %s timed out", self.name, exc_info=exc)
            raise UpstreamError(f"{self.name}: timeout") from exc
        except requests.RequestException as exc:
            self._log.error("Request to %s failed", self.name, exc_info=exc)
            raise UpstreamError(f"{self.name}: request failed") from exc
        if self._testing_mode:
            self._log.info("%s %s -> %s", method, response.url, response.status_code)
        return self._handle_response(response)

    def _get_json(self, url: str, **kwargs) -> Any:
        response = self._request("GET", url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON from %s", self.name, exc_info=exc)
            raise UpstreamError(f"{self.name}: invalid json") from exc

    def _list_at(self, payload: Any, *path: str) -> List[Dict[str, Any]]:
        """Walk ``path`` into ``payload`` and return the list found there."""
        current = payload
        for key in path:
            if not isinstance(current, dict) or key not in current:
                raise NormalizationError(self.name, ".".join(path))
            current = current[key]
        if not isinstance(current, list):
            raise NormalizationError(self.name, ".".join(path) or "<payload>")
        return current


__all__ = ["HttpProvider", "RequestConfig"]
