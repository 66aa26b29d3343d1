"""Unit tests for the SQLite-backed PersistentStore."""
import asyncio

import pytest

from conftest import make_event
from eventsaround.models import Event
from eventsaround.results import StorageError
from eventsaround.store import PersistentStore


def test_get_absent_key_returns_none(store):
    assert asyncio.run(store.get("missing", list[str])) is None


def test_set_then_get_round_trips_models(store):
    """Test stored events parse back with aliases intact."""
    async def scenario():
        await store.set("favorites", {"E1": make_event("E1")}, dict[str, Event])
        return await store.get("favorites", dict[str, Event])

    favorites = asyncio.run(scenario())

    assert favorites["E1"].venue.name == "Hollywood Bowl"
    assert favorites["E1"].category_path == ["Music", "Rock", "Pop"]


def test_values_survive_a_new_store_instance(tmp_path):
    """Test writes are durable across store instances on the same file."""
    path = tmp_path / "durable.db"

    asyncio.run(PersistentStore(path).set("history", ["jazz", "rock"]))

    assert asyncio.run(PersistentStore(path).get("history", list[str])) == ["jazz", "rock"]


def test_remove(store):
    async def scenario():
        await store.set("history", ["jazz"])
        await store.remove("history")
        return await store.get("history", list[str]), await store.keys()

    value, keys = asyncio.run(scenario())

    assert value is None
    assert keys == []


@pytest.mark.parametrize("payload", ["{not json", '{"E1": 42}', '"just a string"'])
def test_corrupt_payload_reads_as_absent(store, payload, caplog):
    """Test malformed stored data degrades to None instead of raising."""
    async def scenario():
        await store.set_text("favorites", payload)
        return await store.get("favorites", dict[str, Event])

    assert asyncio.run(scenario()) is None
    assert "corrupt" in caplog.text


def test_unwritable_location_raises_storage_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    store = PersistentStore(blocker / "nested" / "store.db")

    with pytest.raises(StorageError):
        asyncio.run(store.set("history", ["jazz"]))


def test_concurrent_writers_do_not_interleave(store):
    """Test read-modify-write cycles under the store lock keep every update."""
    async def append(keyword):
        async with store.transaction():
            current = await store.get("history", list[str]) or []
            await asyncio.sleep(0)
            await store.set("history", current + [keyword], locked=True)

    async def scenario():
        await store.init()
        await asyncio.gather(*(append(f"k{i}") for i in range(5)))
        return await store.get("history", list[str])

    assert sorted(asyncio.run(scenario())) == ["k0", "k1", "k2", "k3", "k4"]
