"""In-memory health registry for the admin endpoint.

Counts how each domain cache is being served and how often each provider
failed, so operators can tell a cold cache from a broken upstream.
"""
from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict, Mapping


@dataclass(frozen=True)
class CacheStats:
    """Simple container for cache related counters."""

    hits: int = 0
    misses: int = 0
    refreshes: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "refreshes": self.refreshes}


class HealthRegistry:
    """Stores per-domain cache counters and provider error counters."""

    def __init__(self) -> None:
        self._cache_stats: Dict[str, CacheStats] = {}
        self._provider_errors: Dict[str, int] = {}
        self._lock = Lock()

    # -- Cache outcomes -----------------------------------------------------
    def record_cache_outcome(self, domain: str, outcome: str) -> None:
        if not domain:
            raise ValueError("domain must be provided")
        if outcome not in ("hit", "miss", "refresh"):
            raise ValueError(f"unknown cache outcome: {outcome}")
        with self._lock:
            stats = self._cache_stats.get(domain, CacheStats())
            if outcome == "hit":
                stats = CacheStats(stats.hits + 1, stats.misses, stats.refreshes)
            elif outcome == "miss":
                stats = CacheStats(stats.hits, stats.misses + 1, stats.refreshes)
            else:
                stats = CacheStats(stats.hits, stats.misses, stats.refreshes + 1)
            self._cache_stats[domain] = stats

    def cache_stats(self, domain: str) -> CacheStats:
        with self._lock:
            return self._cache_stats.get(domain, CacheStats())

    # -- Provider errors ----------------------------------------------------
    def record_provider_error(self, provider: str, increment: int = 1) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        if increment <= 0:
            raise ValueError("increment must be positive")
        with self._lock:
            self._provider_errors[provider] = (
                self._provider_errors.get(provider, 0) + increment
            )

    def drain_provider_errors(self) -> Dict[str, int]:
        with self._lock:
            snapshot = dict(self._provider_errors)
            self._provider_errors.clear()
            return snapshot

    # -- Snapshot -----------------------------------------------------------
    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            providers = dict(self._provider_errors)
            cache: Mapping[str, Dict[str, int]] = {
                domain: stats.as_dict() for domain, stats in self._cache_stats.items()
            }
        return {"providers": providers, "cache": dict(cache)}


__all__ = ["CacheStats", "HealthRegistry"]
