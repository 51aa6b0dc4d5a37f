# ─────────────────────────────────────────────────────────────────
# simulator.py — Synthetic Telemetry for Rooms Without a Sensor
#
# A dummy room gets a believable temperature from three parts added
# to a 22°C base:
#   1. a room profile picked by room_id % 3 (storage / processing / default)
#   2. a day/night swing of ±1.5°C peaking mid-afternoon
#   3. uniform noise scaled by the profile's variation
#
# The reading is stored per room under "dummyData_{room_id}" and only
# moves once per 5-minute window; inside the window every call returns
# the stored record untouched.
# ─────────────────────────────────────────────────────────────────

import json
import logging
import math
import random
from datetime import datetime, timedelta
from typing import Callable, Optional

from database import KeyLocks, KeyValueStore, dummy_data_key
from models import SimulatedReading, TemperaturePoint
from thresholds import ThresholdStore
from timefmt import parse_iso, to_iso, utc_now

logger = logging.getLogger("simulator")

BASE_TEMPERATURE = 22.0
UPDATE_INTERVAL = timedelta(minutes=5)
HISTORY_HOURS = 24
HISTORY_LIMIT = 24

# room_id % 3 → profile
ROOM_PROFILES = {
    0: {"name": "storage", "offset": -3.0, "variation": 2.0},
    1: {"name": "processing", "offset": 2.0, "variation": 3.0},
    2: {"name": "default", "offset": 0.0, "variation": 2.0},
}


def room_profile(room_id: int) -> dict:
    return ROOM_PROFILES[room_id % 3]


def diurnal_offset(hour: int) -> float:
    return 1.5 * math.sin((hour - 6) * math.pi / 12)


def generate_temperature(room_id: int, at: datetime, rng: random.Random) -> float:
    profile = room_profile(room_id)
    noise = (rng.random() - 0.5) * profile["variation"]
    temperature = BASE_TEMPERATURE + profile["offset"] + diurnal_offset(at.hour) + noise
    return round(temperature, 1)


def generate_history(room_id: int, now: datetime, rng: random.Random, hours: int = HISTORY_HOURS):
    """Hourly points from `hours` ago up to now, oldest first."""
    points = []
    for i in range(hours, -1, -1):
        at = now - timedelta(hours=i)
        points.append(TemperaturePoint(
            temperature=generate_temperature(room_id, at, rng),
            timestamp=to_iso(at),
        ))
    return points


class TemperatureSimulator:
    """
    Produces and persists a SimulatedReading per dummy room.

    `clock` and `rng` are injectable so tests can pin time and noise.
    """

    def __init__(
        self,
        store: KeyValueStore,
        locks: KeyLocks,
        thresholds: Optional[ThresholdStore] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.locks = locks
        self.thresholds = thresholds
        self.clock = clock
        self.rng = rng or random.Random()

    def fallback(self) -> SimulatedReading:
        return SimulatedReading(
            current_temperature=BASE_TEMPERATURE,
            last_updated=to_iso(self.clock()),
            history=[],
        )

    async def _persist(self, key: str, reading: SimulatedReading):
        await self.store.set(key, json.dumps(reading.model_dump(mode="json", by_alias=True)))

    async def get_reading(self, room_id: int, room_name: str = "") -> SimulatedReading:
        key = dummy_data_key(room_id)
        try:
            async with self.locks.hold(key):
                raw = await self.store.get(key)
                now = self.clock()

                if raw is None:
                    reading = self._create(room_id, now)
                    await self._persist(key, reading)
                    logger.info(
                        f"🎲 Created simulated data for room {room_id} ({room_name}): "
                        f"{reading.current_temperature}°C"
                    )
                    created = True
                else:
                    reading = SimulatedReading.model_validate_json(raw)
                    created = False
                    if now - parse_iso(reading.last_updated) > UPDATE_INTERVAL:
                        reading = self._advance(room_id, reading, now)
                        await self._persist(key, reading)
                        logger.debug(
                            f"🌡️  Room {room_id} ({room_name}) updated to {reading.current_temperature}°C"
                        )
        except Exception:
            logger.error(f"❌ Error getting simulated data for room {room_id}", exc_info=True)
            return self.fallback()

        if created and self.thresholds is not None:
            await self.thresholds.save_default(room_id)
        return reading

    def _create(self, room_id: int, now: datetime) -> SimulatedReading:
        history = generate_history(room_id, now, self.rng)
        return SimulatedReading(
            current_temperature=generate_temperature(room_id, now, self.rng),
            last_updated=to_iso(now),
            history=history[-HISTORY_LIMIT:],
        )

    def _advance(self, room_id: int, reading: SimulatedReading, now: datetime) -> SimulatedReading:
        temperature = generate_temperature(room_id, now, self.rng)
        stamp = to_iso(now)
        history = reading.history + [TemperaturePoint(temperature=temperature, timestamp=stamp)]
        return SimulatedReading(
            current_temperature=temperature,
            last_updated=stamp,
            history=history[-HISTORY_LIMIT:],
        )
