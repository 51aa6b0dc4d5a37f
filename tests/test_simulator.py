import json
from datetime import timedelta

import pytest

from conftest import NOW, seed_json
from database import InMemoryStore
from models import Threshold
from simulator import (
    HISTORY_LIMIT,
    TemperatureSimulator,
    diurnal_offset,
    generate_history,
    generate_temperature,
    room_profile,
)
from thresholds import DEFAULT_THRESHOLD, ThresholdStore
from timefmt import to_iso


class BrokenStore(InMemoryStore):
    async def get(self, key):
        raise OSError("storage offline")


@pytest.fixture()
def thresholds(store, locks):
    return ThresholdStore(store, locks)


@pytest.fixture()
def simulator(store, locks, thresholds, clock, rng):
    return TemperatureSimulator(store, locks, thresholds, clock=clock, rng=rng)


def test_room_profiles_cycle_by_room_id():
    assert room_profile(3)["name"] == "storage"
    assert room_profile(4)["name"] == "processing"
    assert room_profile(5)["name"] == "default"


def test_diurnal_cycle():
    assert diurnal_offset(6) == pytest.approx(0.0)
    assert diurnal_offset(12) == pytest.approx(1.5)
    assert diurnal_offset(0) == pytest.approx(-1.5)


def test_generated_temperature_stays_within_profile_band(rng):
    at = NOW.replace(hour=6)
    for room_id, low, high in ((3, 18.0, 20.0), (4, 22.5, 25.5), (5, 21.0, 23.0)):
        for _ in range(200):
            value = generate_temperature(room_id, at, rng)
            assert low <= value <= high
            assert value == round(value, 1)


def test_generate_history_spans_24_hours(rng):
    history = generate_history(2, NOW, rng)
    assert len(history) == 25
    assert history[0].timestamp == to_iso(NOW - timedelta(hours=24))
    assert history[-1].timestamp == to_iso(NOW)


async def test_first_access_creates_and_persists(simulator, store, thresholds):
    reading = await simulator.get_reading(2, "Packing hall")

    assert reading.last_updated == to_iso(NOW)
    assert len(reading.history) == HISTORY_LIMIT
    stored = json.loads(store.data["dummyData_2"])
    assert stored["currentTemperature"] == reading.current_temperature
    assert stored["lastUpdated"] == reading.last_updated
    assert await thresholds.get(2) == DEFAULT_THRESHOLD


async def test_first_access_keeps_existing_threshold(simulator, thresholds):
    await thresholds.save(2, Threshold(min_temperature=10, max_temperature=30))
    await simulator.get_reading(2, "Packing hall")
    assert await thresholds.get(2) == Threshold(min_temperature=10, max_temperature=30)


async def test_idempotent_within_update_window(simulator, store, clock):
    first = await simulator.get_reading(2, "Packing hall")
    raw = store.data["dummyData_2"]

    clock.advance(minutes=2)
    second = await simulator.get_reading(2, "Packing hall")
    clock.advance(minutes=2, seconds=59)
    third = await simulator.get_reading(2, "Packing hall")

    assert first.model_dump_json() == second.model_dump_json() == third.model_dump_json()
    assert store.data["dummyData_2"] == raw


async def test_updates_after_window(simulator, clock):
    first = await simulator.get_reading(2, "Packing hall")

    clock.advance(minutes=5, seconds=1)
    updated = await simulator.get_reading(2, "Packing hall")

    assert updated.last_updated == to_iso(clock.now)
    assert updated.last_updated != first.last_updated
    assert updated.history[-1].timestamp == updated.last_updated
    assert updated.history[-1].temperature == updated.current_temperature
    assert updated.history[:-1] == first.history[1:]


async def test_history_never_exceeds_limit(simulator, clock):
    for _ in range(60):
        clock.advance(minutes=6)
        reading = await simulator.get_reading(4, "Oven room")
        assert len(reading.history) <= HISTORY_LIMIT
    assert len(reading.history) == HISTORY_LIMIT


async def test_corrupt_record_returns_fallback(simulator, store):
    store.data["dummyData_2"] = "not json at all"
    reading = await simulator.get_reading(2, "Packing hall")
    assert reading.current_temperature == 22
    assert reading.history == []
    assert reading.last_updated == to_iso(NOW)


async def test_storage_failure_returns_fallback(locks, clock, rng):
    simulator = TemperatureSimulator(BrokenStore(), locks, clock=clock, rng=rng)
    reading = await simulator.get_reading(2, "Packing hall")
    assert reading.current_temperature == 22
    assert reading.history == []


async def test_stored_reading_is_returned_as_is(simulator, store, clock):
    seed_json(store, "dummyData_2", {
        "currentTemperature": 35.0,
        "lastUpdated": to_iso(NOW - timedelta(minutes=1)),
        "history": [{"temperature": 35.0, "timestamp": to_iso(NOW - timedelta(minutes=1))}],
    })
    reading = await simulator.get_reading(2, "Packing hall")
    assert reading.current_temperature == 35.0
    assert len(reading.history) == 1
