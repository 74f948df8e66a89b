from __future__ import annotations

import threading
import time
from typing import Any, Dict, List

import pytest

from explorer.core.abstractions import Location
from explorer.core.exceptions import NormalizationError, UpstreamError
from explorer.core.health import HealthRegistry
from explorer.core.models import Store
from explorer.core.services import Domain, DomainCacheOrchestrator, build_orchestrators
from explorer.core.staleness import STALENESS_THRESHOLDS

from tests.doubles import StubProvider, TimeController


RAW_ITEMS: Dict[str, List[Dict[str, Any]]] = {
    "weather": [
        {"time": 1704067200, "summary": "Rain"},
        {"time": 1704153600, "summary": "More rain"},
        {"time": 1704240000, "summary": "Drizzle"},
    ],
    "restaurants": [
        {"name": "Chowder", "price": "$$", "rating": 4.5, "url": "https://y/1", "image_url": "https://i/1"},
        {"name": "Ramen", "price": "$", "rating": 4.0, "url": "https://y/2", "image_url": "https://i/2"},
    ],
    "movies": [
        {"title": "Sleepless", "vote_average": 6.6, "vote_count": 10, "poster_path": "/a.jpg"},
        {"title": "Frasier", "vote_average": 7.0, "vote_count": 20, "poster_path": "/b.jpg"},
    ],
    "meetups": [
        {"link": "https://m/1", "name": "Python", "created": 1704067200, "organizer": {"name": "Ada"}},
        {"link": "https://m/2", "name": "Rust", "created": 1704067200, "organizer": {"name": "Grace"}},
    ],
    "trails": [
        {"name": "Rattlesnake", "conditionDate": "2018-07-21 11:52:26", "starVotes": 3},
        {"name": "Mailbox", "conditionDate": "2019-01-02 08:00:00", "starVotes": 9},
    ],
}

FIRST_FIELD = {
    "weather": "forecast",
    "restaurants": "name",
    "movies": "title",
    "meetups": "name",
    "trails": "name",
}


class RecordingStore:
    """Wraps a real store and records every call made to it."""

    def __init__(self, store: Store) -> None:
        self._store = store
        self.calls: List[str] = []

    def query(self, table, location_id):
        self.calls.append("query")
        return self._store.query(table, location_id)

    def insert_batch(self, table, rows):
        self.calls.append("insert")
        return self._store.insert_batch(table, rows)

    def replace_batch(self, table, location_id, rows):
        self.calls.append("replace")
        return self._store.replace_batch(table, location_id, rows)

    @property
    def writes(self) -> List[str]:
        return [call for call in self.calls if call != "query"]


def _orchestrator(domain: str, store, clock, provider=None, health=None):
    provider = provider or StubProvider(domain, RAW_ITEMS[domain])
    orchestrator = DomainCacheOrchestrator(
        Domain.for_provider(domain, provider), store, clock=clock, health=health
    )
    return orchestrator, provider


def _names(domain: str, records) -> List[Any]:
    return [getattr(record, FIRST_FIELD[domain]) for record in records]


@pytest.mark.parametrize("domain", sorted(RAW_ITEMS))
def test_miss_fetches_once_and_persists_in_order(domain, store, seattle, clock):
    recording = RecordingStore(store)
    orchestrator, provider = _orchestrator(domain, recording, clock)

    records = orchestrator.get_records(seattle)

    expected = [item.get("summary") or item.get("name") or item.get("title") for item in RAW_ITEMS[domain]]
    assert provider.calls == [seattle]
    assert _names(domain, records) == expected
    assert recording.writes == ["insert"]
    stored = store.query(orchestrator.domain.table, seattle.id)
    assert [row["id"] for row in stored] == [record.id for record in records]
    assert {row["created_time"] for row in stored} == {clock().isoformat()}
    assert all(record.location_id == seattle.id for record in records)


@pytest.mark.parametrize("domain", sorted(RAW_ITEMS))
def test_fresh_rows_are_served_without_calls_or_writes(domain, store, seattle, clock):
    first, _ = _orchestrator(domain, store, clock)
    stored = first.get_records(seattle)
    recording = RecordingStore(store)
    orchestrator, provider = _orchestrator(domain, recording, clock)

    clock.advance(STALENESS_THRESHOLDS[domain])
    records = orchestrator.get_records(seattle)

    assert provider.calls == []
    assert recording.writes == []
    assert records == stored


@pytest.mark.parametrize("domain", sorted(RAW_ITEMS))
def test_stale_rows_are_replaced(domain, store, seattle, clock):
    first, _ = _orchestrator(domain, store, clock)
    old = first.get_records(seattle)
    recording = RecordingStore(store)
    orchestrator, provider = _orchestrator(domain, recording, clock)

    clock.advance(STALENESS_THRESHOLDS[domain] + 1)
    records = orchestrator.get_records(seattle)

    assert len(provider.calls) == 1
    assert recording.writes == ["replace"]
    stored = store.query(orchestrator.domain.table, seattle.id)
    assert len(stored) == len(RAW_ITEMS[domain])
    assert {row["id"] for row in stored}.isdisjoint({record.id for record in old})
    assert [row["id"] for row in stored] == [record.id for record in records]


def test_weather_older_than_45_minutes_is_refetched(store, seattle, clock):
    orchestrator, provider = _orchestrator("weather", store, clock)
    orchestrator.get_records(seattle)

    clock.advance(45)
    provider.raw_items = [{"time": 1704326400, "summary": "Sun"}]
    records = orchestrator.get_records(seattle)

    assert len(provider.calls) == 2
    assert [record.forecast for record in records] == ["Sun"]
    assert [row["forecast"] for row in store.query("weathers", seattle.id)] == ["Sun"]


def test_upstream_failure_on_miss_persists_nothing(store, seattle, clock):
    health = HealthRegistry()
    provider = StubProvider("weather", RAW_ITEMS["weather"], fail=True)
    orchestrator, _ = _orchestrator("weather", store, clock, provider=provider, health=health)

    with pytest.raises(UpstreamError):
        orchestrator.get_records(seattle)

    assert store.query("weathers", seattle.id) == []
    assert health.snapshot()["providers"] == {"weather": 1}


def test_upstream_failure_on_stale_keeps_old_batch(store, seattle, clock):
    orchestrator, provider = _orchestrator("weather", store, clock)
    orchestrator.get_records(seattle)

    clock.advance(31)
    provider.fail = True
    with pytest.raises(UpstreamError):
        orchestrator.get_records(seattle)

    assert len(store.query("weathers", seattle.id)) == 3


def test_bad_item_fails_the_whole_batch(store, seattle, clock):
    items = RAW_ITEMS["meetups"] + [{"name": "No organizer", "created": 1704067200}]
    provider = StubProvider("meetups", items)
    orchestrator, _ = _orchestrator("meetups", store, clock, provider=provider)

    with pytest.raises(NormalizationError) as excinfo:
        orchestrator.get_records(seattle)

    assert excinfo.value.index == 2
    assert excinfo.value.field.startswith("organizer")
    assert store.query("meetups", seattle.id) == []


def test_unsaved_location_is_rejected(store, clock):
    orchestrator, _ = _orchestrator("weather", store, clock)

    with pytest.raises(ValueError):
        orchestrator.get_records(Location("Nowhere", None, 0.0, 0.0))


def test_cache_outcomes_are_counted(store, seattle, clock):
    health = HealthRegistry()
    orchestrator, _ = _orchestrator("weather", store, clock, health=health)

    orchestrator.get_records(seattle)
    orchestrator.get_records(seattle)
    clock.advance(31)
    orchestrator.get_records(seattle)

    assert health.snapshot()["cache"] == {"weather": {"hits": 1, "misses": 1, "refreshes": 1}}


def test_build_orchestrators_covers_every_domain(store):
    providers = {name: StubProvider(name, []) for name in RAW_ITEMS}

    orchestrators = build_orchestrators(providers, store, clock=TimeController())

    assert {name: o.domain.table for name, o in orchestrators.items()} == {
        "weather": "weathers",
        "restaurants": "yelps",
        "movies": "movies",
        "meetups": "meetups",
        "trails": "trails",
    }


class GatedProvider(StubProvider):
    """Blocks inside ``fetch`` until the test opens the gate."""

    def __init__(self, name, items):
        super().__init__(name, items)
        self.entered = threading.Event()
        self.gate = threading.Event()

    def fetch(self, target):
        self.entered.set()
        self.gate.wait(timeout=5)
        return super().fetch(target)


def _run_concurrently(orchestrator, provider, location, count=4):
    results = []

    def worker():
        results.append(orchestrator.get_records(location))

    first = threading.Thread(target=worker)
    first.start()
    assert provider.entered.wait(timeout=5)
    others = [threading.Thread(target=worker) for _ in range(count - 1)]
    for thread in others:
        thread.start()
    time.sleep(0.05)
    provider.gate.set()
    for thread in [first] + others:
        thread.join(timeout=5)
    return results


def test_concurrent_misses_fetch_once(store, seattle, clock):
    provider = GatedProvider("weather", RAW_ITEMS["weather"])
    orchestrator, _ = _orchestrator("weather", store, clock, provider=provider)

    results = _run_concurrently(orchestrator, provider, seattle)

    assert len(results) == 4
    assert len(provider.calls) == 1
    assert len(store.query("weathers", seattle.id)) == len(RAW_ITEMS["weather"])
    assert len({tuple(record.id for record in records) for records in results}) == 1


def test_concurrent_stale_requests_refresh_once(store, seattle, clock):
    first, _ = _orchestrator("weather", store, clock)
    old = first.get_records(seattle)
    provider = GatedProvider("weather", RAW_ITEMS["weather"])
    orchestrator, _ = _orchestrator("weather", store, clock, provider=provider)

    clock.advance(STALENESS_THRESHOLDS["weather"] + 1)
    results = _run_concurrently(orchestrator, provider, seattle)

    assert len(results) == 4
    assert len(provider.calls) == 1
    stored = store.query("weathers", seattle.id)
    assert len(stored) == len(RAW_ITEMS["weather"])
    assert {row["id"] for row in stored}.isdisjoint({record.id for record in old})
    assert len({tuple(record.id for record in records) for records in results}) == 1
