import json
import random
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from database import InMemoryStore, KeyLocks
from services import build_services

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeBackend:
    """Serves /api/rooms and /api/alert-logs from plain lists and counts calls."""

    def __init__(self, rooms=None, alerts=None):
        self.rooms = rooms or []
        self.alerts = alerts or []
        self.calls = []
        self.fail_with = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request.url.path, request.headers.get("authorization")))
        if self.fail_with is not None:
            raise self.fail_with
        if request.url.path == "/api/rooms":
            return httpx.Response(200, json={"data": self.rooms})
        if request.url.path == "/api/alert-logs":
            return httpx.Response(200, json={"data": self.alerts})
        return httpx.Response(404, json={"message": "not found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url="https://backend.test", transport=httpx.MockTransport(self.handler))

    def alert_fetches(self) -> int:
        return sum(1 for path, _ in self.calls if path == "/api/alert-logs")


def seed_json(store: InMemoryStore, key: str, value):
    store.data[key] = json.dumps(value)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store():
    return InMemoryStore()


@pytest.fixture()
def locks():
    return KeyLocks()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def backend():
    return FakeBackend(
        rooms=[
            {"id": 1, "name": "Cold store", "description": "Has a real sensor"},
            {"id": 2, "name": "Packing hall", "description": "Simulated"},
        ],
        alerts=[
            {
                "id": 501,
                "room_id": 1,
                "sensor_id": 7,
                "temperature_value": 31.5,
                "alert_type": "high",
                "triggered_at": "2026-03-01T09:00:00.000Z",
                "status": "Active",
            },
        ],
    )


@pytest.fixture()
def services(store, backend, clock, rng):
    return build_services(store, backend.client(), clock=clock, rng=rng)
