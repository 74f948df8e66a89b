from __future__ import annotations

import pytest

from explorer.core.abstractions import Location
from explorer.core.models import Store

from tests.doubles import TimeController


@pytest.fixture()
def store(tmp_path) -> Store:
    return Store.from_url(f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture()
def clock() -> TimeController:
    return TimeController()


@pytest.fixture()
def seattle(store: Store) -> Location:
    return store.insert_location(
        Location(
            search_query="Seattle",
            formatted_query="Seattle, WA, USA",
            latitude=47.6062095,
            longitude=-122.3320708,
        )
    )
