import json

import httpx
import pytest

from conftest import NOW
from database import InMemoryStore
from models import Threshold
from services import build_services
from timefmt import epoch_ms


class CacheWriteFailingStore(InMemoryStore):
    async def set(self, key, value):
        if key == "alerts_cache_v1":
            raise OSError("quota exceeded")
        await super().set(key, value)


async def test_ttl_window(services, backend, clock, store):
    first = await services.cache.fetch_all_cached("token-abc")
    assert backend.alert_fetches() == 1
    assert json.loads(store.data["alerts_cache_v1"])["timestamp"] == epoch_ms(NOW)

    clock.advance(seconds=119)
    second = await services.cache.fetch_all_cached("token-abc")
    assert second == first
    assert backend.alert_fetches() == 1

    clock.advance(seconds=2)
    await services.cache.fetch_all_cached("token-abc")
    assert backend.alert_fetches() == 2
    assert json.loads(store.data["alerts_cache_v1"])["timestamp"] == epoch_ms(NOW) + 121_000


async def test_cache_is_not_invalidated_by_threshold_changes(services, backend, clock):
    first = await services.cache.fetch_all_cached("token-abc")
    # room 2's simulated reading would now be far below the band
    await services.thresholds.save(2, Threshold(min_temperature=40, max_temperature=50))
    clock.advance(seconds=60)
    assert await services.cache.fetch_all_cached("token-abc") == first
    assert backend.alert_fetches() == 1


async def test_corrupt_cache_is_a_miss(services, backend, store):
    store.data["alerts_cache_v1"] = "{\"timestamp\": \"yesterday\""
    alerts = await services.cache.fetch_all_cached("token-abc")
    assert [a.id for a in alerts] == [501]
    assert backend.alert_fetches() == 1


async def test_cache_write_failure_still_returns_fresh_data(backend, clock, rng):
    services = build_services(CacheWriteFailingStore(), backend.client(), clock=clock, rng=rng)
    first = await services.cache.fetch_all_cached("token-abc")
    second = await services.cache.fetch_all_cached("token-abc")
    assert [a.id for a in first] == [a.id for a in second] == [501]
    assert backend.alert_fetches() == 2


async def test_aggregator_errors_propagate_through_cache(services, backend):
    backend.fail_with = httpx.ReadTimeout("slow backend")
    with pytest.raises(httpx.ReadTimeout):
        await services.cache.fetch_all_cached("token-abc")
