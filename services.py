# ─────────────────────────────────────────────────────────────────
# services.py — Wiring
#
# One store, one lock registry, one HTTP client, one clock and one
# random source shared by every component. The app builds a Services
# at startup; tests build one around an InMemoryStore and a mocked
# transport.
# ─────────────────────────────────────────────────────────────────

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import httpx

from alert_log import PersistentAlertLog
from alerts import AlertAggregator
from cache import TTLCache
from database import KeyLocks, KeyValueStore
from remote import RemoteAlertSource
from rooms import RoomClassifier
from simulator import TemperatureSimulator
from thresholds import ThresholdStore
from timefmt import utc_now
from timer import DEFAULT_TICK_SECONDS, SimulatorTicker


@dataclass
class Services:
    store: KeyValueStore
    client: httpx.AsyncClient
    thresholds: ThresholdStore
    simulator: TemperatureSimulator
    classifier: RoomClassifier
    remote: RemoteAlertSource
    aggregator: AlertAggregator
    cache: TTLCache
    alert_log: PersistentAlertLog
    ticker: SimulatorTicker

    async def close(self):
        await self.ticker.stop()
        await self.client.aclose()
        await self.store.close()


def build_services(
    store: KeyValueStore,
    client: httpx.AsyncClient,
    clock: Callable[[], datetime] = utc_now,
    rng: Optional[random.Random] = None,
    tick_seconds: float = DEFAULT_TICK_SECONDS,
) -> Services:
    locks = KeyLocks()
    thresholds = ThresholdStore(store, locks)
    simulator = TemperatureSimulator(store, locks, thresholds, clock=clock, rng=rng)
    classifier = RoomClassifier(store, locks, clock=clock)
    remote = RemoteAlertSource(client)
    aggregator = AlertAggregator(remote, classifier, simulator, thresholds)
    return Services(
        store=store,
        client=client,
        thresholds=thresholds,
        simulator=simulator,
        classifier=classifier,
        remote=remote,
        aggregator=aggregator,
        cache=TTLCache(store, aggregator, clock=clock),
        alert_log=PersistentAlertLog(store, locks, aggregator, clock=clock),
        ticker=SimulatorTicker(classifier, simulator, interval=tick_seconds),
    )
