from __future__ import annotations

import pytest

from explorer.core.abstractions import Location
from explorer.core.exceptions import StoreError
from explorer.core.models import DOMAIN_TABLES, Store, detect_driver


def _weather_row(forecast: str, location_id: int) -> dict:
    return {
        "forecast": forecast,
        "time": "Mon Jan 01 2024",
        "created_time": "2024-01-10T12:00:00+00:00",
        "location_id": location_id,
    }


def test_domain_tables():
    assert set(DOMAIN_TABLES) == {"weathers", "yelps", "movies", "meetups", "trails"}


def test_detect_driver():
    assert detect_driver("sqlite:///tmp/x.db") == ("sqlite", "?")
    with pytest.raises(ValueError):
        detect_driver("oracle://db")


def test_location_round_trip(store: Store, seattle: Location):
    assert seattle.id is not None

    found = store.find_location("Seattle")

    assert found == seattle
    assert store.find_location("Portland") is None


def test_duplicate_location_returns_first_row(store: Store, seattle: Location):
    again = store.insert_location(
        Location(search_query="Seattle", formatted_query="Other", latitude=0.0, longitude=0.0)
    )

    assert again.id == seattle.id
    assert again.formatted_query == "Seattle, WA, USA"


def test_insert_batch_preserves_order(store: Store, seattle: Location):
    ids = store.insert_batch("weathers", [_weather_row(name, seattle.id) for name in ("c", "a", "b")])

    rows = store.query("weathers", seattle.id)

    assert [row["forecast"] for row in rows] == ["c", "a", "b"]
    assert [row["id"] for row in rows] == ids


def test_delete_where_only_touches_one_location(store: Store, seattle: Location):
    portland = store.insert_location(
        Location(search_query="Portland", formatted_query="Portland, OR", latitude=45.5, longitude=-122.6)
    )
    store.insert_batch("weathers", [_weather_row("sea", seattle.id)])
    store.insert_batch("weathers", [_weather_row("pdx", portland.id)])

    deleted = store.delete_where("weathers", seattle.id)

    assert deleted == 1
    assert store.query("weathers", seattle.id) == []
    assert len(store.query("weathers", portland.id)) == 1


def test_replace_batch_is_atomic(store: Store, seattle: Location):
    store.insert_batch("weathers", [_weather_row("old", seattle.id)])
    broken = [_weather_row("new", seattle.id), {"no_such_column": 1}]

    with pytest.raises(StoreError):
        store.replace_batch("weathers", seattle.id, broken)

    assert [row["forecast"] for row in store.query("weathers", seattle.id)] == ["old"]


def test_replace_batch_swaps_rows(store: Store, seattle: Location):
    store.insert_batch("weathers", [_weather_row("old", seattle.id)])

    store.replace_batch("weathers", seattle.id, [_weather_row("new-1", seattle.id), _weather_row("new-2", seattle.id)])

    assert [row["forecast"] for row in store.query("weathers", seattle.id)] == ["new-1", "new-2"]


def test_unknown_table_is_rejected(store: Store):
    with pytest.raises(ValueError):
        store.query("locations; DROP TABLE weathers", 1)


def test_rows_require_a_parent_location(store: Store):
    with pytest.raises(StoreError):
        store.insert_batch("weathers", [_weather_row("orphan", 999)])
