# ─────────────────────────────────────────────────────────────────
# thresholds.py — Per-room Temperature Bounds
#
# All thresholds live under one storage key as a mapping:
#   {"2": {"min_temperature": 18, "max_temperature": 25}, ...}
#
# Reads never raise: missing, corrupt or invalid data means
# "no threshold configured" (None). Write failures are logged.
# ─────────────────────────────────────────────────────────────────

import logging
from typing import Dict, Optional

from pydantic import ValidationError

from database import THRESHOLDS_KEY, KeyLocks, KeyValueStore, read_json, write_json
from models import Threshold

logger = logging.getLogger("thresholds")

# Band seeded for a room the first time it is simulated
DEFAULT_THRESHOLD = Threshold(min_temperature=18, max_temperature=25)


class ThresholdStore:
    def __init__(self, store: KeyValueStore, locks: KeyLocks):
        self.store = store
        self.locks = locks

    async def _load(self) -> dict:
        thresholds = await read_json(self.store, THRESHOLDS_KEY, {})
        return thresholds if isinstance(thresholds, dict) else {}

    async def save(self, room_id: int, threshold: Threshold):
        """Overwrite the threshold for one room."""
        try:
            async with self.locks.hold(THRESHOLDS_KEY):
                thresholds = await self._load()
                thresholds[str(room_id)] = threshold.model_dump(mode="json")
                if await write_json(self.store, THRESHOLDS_KEY, thresholds):
                    logger.info(
                        f"🎯 Threshold saved for room {room_id}: "
                        f"{threshold.min_temperature}–{threshold.max_temperature}°C"
                    )
        except Exception:
            logger.error(f"❌ Failed to save threshold for room {room_id}", exc_info=True)

    async def save_default(self, room_id: int) -> bool:
        """Seed DEFAULT_THRESHOLD unless the room already has a band. Returns True if seeded."""
        try:
            async with self.locks.hold(THRESHOLDS_KEY):
                thresholds = await self._load()
                if str(room_id) in thresholds:
                    return False
                thresholds[str(room_id)] = DEFAULT_THRESHOLD.model_dump(mode="json")
                seeded = await write_json(self.store, THRESHOLDS_KEY, thresholds)
        except Exception:
            logger.error(f"❌ Could not create default threshold for room {room_id}", exc_info=True)
            return False
        if seeded:
            logger.info(f"🎯 Created default threshold for dummy room {room_id}")
        return seeded

    async def get(self, room_id: int) -> Optional[Threshold]:
        thresholds = await self._load()
        raw = thresholds.get(str(room_id))
        if raw is None:
            return None
        try:
            return Threshold.model_validate(raw)
        except ValidationError:
            logger.warning(f"⚠️  Ignoring invalid threshold stored for room {room_id}: {raw}")
            return None

    async def all(self) -> Dict[int, Threshold]:
        result = {}
        for key, raw in (await self._load()).items():
            try:
                result[int(key)] = Threshold.model_validate(raw)
            except (ValueError, ValidationError):
                continue
        return result
