# ─────────────────────────────────────────────────────────────────
# database.py — Key-Value Storage
#
# This file owns all persisted state for the application. Callers
# only see four operations: get, set, delete, list_keys. Values are
# JSON strings.
#
# InMemoryStore is a plain dict and resets on restart.
# SqliteStore keeps the same keys in a single-table SQLite file.
# Either one is created by the app and handed to every component.
# ─────────────────────────────────────────────────────────────────

import asyncio
import json
import logging
import sqlite3
from contextlib import asynccontextmanager, closing
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger("database")

# ── STORAGE KEYS ──────────────────────────────────────────────────

THRESHOLDS_KEY = "demoRoomThresholds"
DUMMY_DATA_PREFIX = "dummyData_"
ROOM_CONFIG_KEY = "roomConfiguration"
ALERTS_CACHE_KEY = "alerts_cache_v1"
ALERTS_PERSISTENT_LOG_KEY = "alerts_persistent_log_v1"


def dummy_data_key(room_id: int) -> str:
    return f"{DUMMY_DATA_PREFIX}{room_id}"


class KeyValueStore:
    """Async string-keyed store. Subclasses provide the four operations."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str):
        raise NotImplementedError

    async def delete(self, *keys: str):
        raise NotImplementedError

    async def list_keys(self, prefix: str = "") -> List[str]:
        raise NotImplementedError

    async def close(self):
        pass


class InMemoryStore(KeyValueStore):
    """
    A dict in RAM.

    Structure:
      Key   → storage key, e.g. "dummyData_2"
      Value → JSON text
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str):
        self.data[key] = value

    async def delete(self, *keys: str):
        for key in keys:
            self.data.pop(key, None)

    async def list_keys(self, prefix: str = "") -> List[str]:
        return [key for key in self.data if key.startswith(prefix)]


class SqliteStore(KeyValueStore):
    """Key-value pairs in one SQLite table, one connection per call."""

    def __init__(self, path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    def _get(self, key: str) -> Optional[str]:
        with closing(self._connect()) as conn, conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def _set(self, key: str, value: str):
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def _delete(self, keys):
        with closing(self._connect()) as conn, conn:
            conn.executemany("DELETE FROM kv WHERE key = ?", [(k,) for k in keys])

    def _list_keys(self, prefix: str) -> List[str]:
        # substr comparison keeps "_" and "%" in prefixes literal
        with closing(self._connect()) as conn, conn:
            rows = conn.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        return [row[0] for row in rows]

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str):
        await asyncio.to_thread(self._set, key, value)

    async def delete(self, *keys: str):
        if keys:
            await asyncio.to_thread(self._delete, keys)

    async def list_keys(self, prefix: str = "") -> List[str]:
        return await asyncio.to_thread(self._list_keys, prefix)


def open_store(location: str) -> KeyValueStore:
    if location == "memory":
        return InMemoryStore()
    return SqliteStore(location)


# ── JSON HELPERS ──────────────────────────────────────────────────
# A failed read or corrupt JSON is indistinguishable from "absent".

async def read_json(store: KeyValueStore, key: str, default=None):
    try:
        raw = await store.get(key)
        if raw is None:
            return default
        return json.loads(raw)
    except Exception:
        logger.warning(f"⚠️  Could not read '{key}' from storage, treating as absent", exc_info=True)
        return default


async def write_json(store: KeyValueStore, key: str, value) -> bool:
    try:
        await store.set(key, json.dumps(value))
        return True
    except Exception:
        logger.error(f"❌ Could not write '{key}' to storage", exc_info=True)
        return False


# ── PER-KEY LOCKS ─────────────────────────────────────────────────
# Every read-modify-write holds the lock for the key it rewrites, so
# two overlapping refreshes cannot clobber each other's update.

class KeyLocks:
    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            yield
