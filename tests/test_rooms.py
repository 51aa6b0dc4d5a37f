import json

import pytest

from conftest import NOW, seed_json
from database import InMemoryStore
from models import Room
from rooms import RoomClassifier
from timefmt import to_iso

ROOMS = [
    Room(id=10, name="Cold store"),
    Room(id=11, name="Packing hall"),
    Room(id=12, name="Dispatch"),
]


class DeleteFailingStore(InMemoryStore):
    async def delete(self, *keys):
        raise OSError("locked")


@pytest.fixture()
def classifier(store, locks, clock):
    return RoomClassifier(store, locks, clock=clock)


async def test_unconfigured_room_is_not_dummy(classifier, store):
    assert await classifier.is_dummy(10) is False
    assert await classifier.first_room_id() is None
    # reading the default does not write it
    assert "roomConfiguration" not in store.data


async def test_initialize_marks_first_room_real(classifier, store):
    config = await classifier.initialize(ROOMS)

    assert config.first_room_id == 10
    assert await classifier.is_dummy(10) is False
    assert await classifier.is_dummy(11) is True
    assert await classifier.is_dummy(12) is True

    stored = json.loads(store.data["roomConfiguration"])
    assert stored["firstRoomId"] == 10
    assert stored["roomTypes"] == {"10": "real", "11": "dummy", "12": "dummy"}
    assert [entry["id"] for entry in stored["roomOrder"]] == [10, 11, 12]
    assert stored["roomOrder"][0]["createdAt"] == to_iso(NOW)


async def test_initialize_overwrites_previous_configuration(classifier):
    await classifier.initialize(ROOMS)
    await classifier.initialize([Room(id=12, name="Dispatch"), Room(id=13, name="Lab")])

    config = await classifier.get_configuration()
    assert config.first_room_id == 12
    assert config.room_types == {12: "real", 13: "dummy"}


async def test_initialize_with_no_rooms(classifier):
    config = await classifier.initialize([])
    assert config.first_room_id is None
    assert config.room_types == {}


async def test_discover_assigns_only_new_rooms(classifier):
    await classifier.discover(ROOMS[:1])
    assert await classifier.first_room_id() == 10
    assert await classifier.is_dummy(10) is False

    config = await classifier.discover(ROOMS + [Room(id=13, name="Lab")])
    assert config.first_room_id == 10
    assert config.room_types == {10: "real", 11: "dummy", 12: "dummy", 13: "dummy"}
    assert [entry.id for entry in config.room_order] == [10, 11, 12, 13]


async def test_discover_respects_existing_types(classifier):
    await classifier.initialize([Room(id=11, name="Packing hall"), Room(id=10, name="Cold store")])
    config = await classifier.discover(ROOMS)
    assert config.first_room_id == 11
    assert config.room_types == {11: "real", 10: "dummy", 12: "dummy"}


async def test_corrupt_configuration_reads_as_empty(classifier, store):
    store.data["roomConfiguration"] = "{{{"
    assert await classifier.is_dummy(10) is False
    seed_json(store, "roomConfiguration", {"roomTypes": {"10": "haunted"}})
    assert (await classifier.get_configuration()).room_types == {}


async def test_reset_all_wipes_every_local_key(classifier, store):
    await classifier.initialize(ROOMS)
    for key in ("dummyData_11", "dummyData_12", "alerts_cache_v1",
                "alerts_persistent_log_v1", "demoRoomThresholds"):
        seed_json(store, key, {})
    seed_json(store, "unrelated", {"keep": True})

    assert await classifier.reset_all() is True
    assert list(store.data) == ["unrelated"]


async def test_reset_all_reports_failure(locks, clock):
    classifier = RoomClassifier(DeleteFailingStore(), locks, clock=clock)
    assert await classifier.reset_all() is False


async def test_debug_snapshot_lists_temperature_keys(classifier, store):
    await classifier.initialize(ROOMS)
    seed_json(store, "dummyData_11", {"currentTemperature": 21.0})
    seed_json(store, "alerts_cache_v1", {"timestamp": 1, "data": []})
    seed_json(store, "session", {"token": "secret"})
    store.data["demoRoomThresholds"] = "corrupt"

    snapshot = await classifier.debug_snapshot()
    assert set(snapshot) == {"alerts_cache_v1", "demoRoomThresholds", "dummyData_11", "roomConfiguration"}
    assert snapshot["dummyData_11"] == {"currentTemperature": 21.0}
    assert snapshot["demoRoomThresholds"] is None
