"""Error taxonomy shared by the resolver, orchestrators and the store."""
from __future__ import annotations

from typing import Optional


class ExplorerError(RuntimeError):
    """Base class for every error raised by the core."""


class UpstreamError(ExplorerError):
    """Provider unreachable, timed out or answered with a non-success status."""


class ProviderError(ExplorerError):
    """Provider answered successfully but without any usable result."""


class StoreError(ExplorerError):
    """Persistence read or write failed."""


class NormalizationError(ExplorerError):
    """A required field is missing from a provider payload."""

    def __init__(self, domain: str, field: str, index: Optional[int] = None) -> None:
        self.domain = domain
        self.field = field
        self.index = index
        where = f" (item {index})" if index is not None else ""
        super().__init__(f"{domain}: missing or invalid field '{field}'{where}")

    def at(self, index: int) -> "NormalizationError":
        """Return a copy of the error pinned to a batch position."""
        return NormalizationError(self.domain, self.field, index)


__all__ = [
    "ExplorerError",
    "UpstreamError",
    "ProviderError",
    "StoreError",
    "NormalizationError",
]
