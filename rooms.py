# ─────────────────────────────────────────────────────────────────
# rooms.py — Real vs. Dummy Room Classification & Maintenance
#
# Only the first room ever discovered has a physical sensor. Every
# room after it is a "dummy" whose telemetry comes from simulator.py.
#
# Stored under "roomConfiguration":
# {
#     "firstRoomId": 1,
#     "roomOrder": [{"id": 1, "name": "Cold store", "createdAt": "..."}],
#     "roomTypes": {"1": "real", "2": "dummy"}
# }
# ─────────────────────────────────────────────────────────────────

import logging
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import ValidationError

from database import (
    ALERTS_CACHE_KEY,
    ALERTS_PERSISTENT_LOG_KEY,
    DUMMY_DATA_PREFIX,
    ROOM_CONFIG_KEY,
    THRESHOLDS_KEY,
    KeyLocks,
    KeyValueStore,
    read_json,
    write_json,
)
from models import Room, RoomConfiguration, RoomOrderEntry
from timefmt import to_iso, utc_now

logger = logging.getLogger("rooms")


class RoomClassifier:
    def __init__(self, store: KeyValueStore, locks: KeyLocks, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.locks = locks
        self.clock = clock

    async def get_configuration(self) -> RoomConfiguration:
        """The stored configuration, or an empty one if absent or corrupt."""
        raw = await read_json(self.store, ROOM_CONFIG_KEY)
        if raw is None:
            return RoomConfiguration()
        try:
            return RoomConfiguration.model_validate(raw)
        except ValidationError:
            logger.warning("⚠️  Stored room configuration is invalid, using an empty one")
            return RoomConfiguration()

    async def _save(self, config: RoomConfiguration) -> bool:
        return await write_json(
            self.store, ROOM_CONFIG_KEY, config.model_dump(mode="json", by_alias=True)
        )

    async def is_dummy(self, room_id: int) -> bool:
        config = await self.get_configuration()
        return config.room_types.get(room_id) == "dummy"

    async def first_room_id(self) -> Optional[int]:
        return (await self.get_configuration()).first_room_id

    async def discover(self, rooms: List[Room]) -> RoomConfiguration:
        """
        Assign a type to every room we have not seen before.

        The first room ever discovered becomes "real"; the rest become
        "dummy". Rooms that already have a type are left alone.
        """
        async with self.locks.hold(ROOM_CONFIG_KEY):
            config = await self.get_configuration()
            changed = False
            for room in rooms:
                if room.id in config.room_types:
                    continue
                if config.first_room_id is None:
                    config.first_room_id = room.id
                    config.room_types[room.id] = "real"
                    logger.info(f"🏠 Auto-assigned room {room.id} as first real room")
                else:
                    config.room_types[room.id] = "dummy"
                    logger.info(f"🎲 Auto-assigned room {room.id} as dummy room")
                config.room_order.append(
                    RoomOrderEntry(id=room.id, name=room.name, created_at=to_iso(self.clock()))
                )
                changed = True
            if changed:
                await self._save(config)
            return config

    async def initialize(self, rooms: List[Room]) -> RoomConfiguration:
        """Overwrite the configuration: first room real, every other room dummy."""
        created_at = to_iso(self.clock())
        config = RoomConfiguration(first_room_id=rooms[0].id if rooms else None)
        for index, room in enumerate(rooms):
            config.room_types[room.id] = "real" if index == 0 else "dummy"
            config.room_order.append(RoomOrderEntry(id=room.id, name=room.name, created_at=created_at))

        async with self.locks.hold(ROOM_CONFIG_KEY):
            await self._save(config)
        logger.info(f"🏗️  Room configuration initialized for {len(rooms)} rooms")
        return config

    async def reset_all(self) -> bool:
        """
        Wipe every piece of local state: configuration, simulated
        readings, alert cache, persistent alert log and thresholds.

        Used to recover from corrupted state. Returns False if the
        store refused the wipe.
        """
        logger.info("🔄 Resetting room configuration...")
        try:
            dummy_keys = await self.store.list_keys(DUMMY_DATA_PREFIX)
            await self.store.delete(
                ROOM_CONFIG_KEY,
                *dummy_keys,
                ALERTS_CACHE_KEY,
                ALERTS_PERSISTENT_LOG_KEY,
                THRESHOLDS_KEY,
            )
        except Exception:
            logger.error("❌ Error resetting room configuration", exc_info=True)
            return False
        if dummy_keys:
            logger.info(f"🗑️  Cleared dummy data keys: {dummy_keys}")
        logger.info("✅ Room configuration reset complete")
        return True

    async def debug_snapshot(self) -> dict:
        """Every temperature-related key with its decoded value."""
        keys = [
            key for key in await self.store.list_keys()
            if key.startswith(DUMMY_DATA_PREFIX)
            or key.startswith("alerts_")
            or key in (ROOM_CONFIG_KEY, THRESHOLDS_KEY)
        ]
        snapshot = {}
        for key in sorted(keys):
            snapshot[key] = await read_json(self.store, key)
        return snapshot
