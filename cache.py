# ─────────────────────────────────────────────────────────────────
# cache.py — Short-lived Cache of the Aggregated Alert View
#
# A single slot under "alerts_cache_v1":
#   {"timestamp": <epoch ms>, "data": [AlertLog, ...]}
#
# The TTL is the only eviction. A threshold or reading change is not
# visible until the entry is older than two minutes.
# ─────────────────────────────────────────────────────────────────

import logging
from datetime import datetime
from typing import Callable, List

from alerts import AlertAggregator
from database import ALERTS_CACHE_KEY, KeyValueStore
from models import AlertLog, CacheEntry
from timefmt import epoch_ms, utc_now

logger = logging.getLogger("cache")

CACHE_TTL_MS = 2 * 60 * 1000


class TTLCache:
    def __init__(
        self,
        store: KeyValueStore,
        aggregator: AlertAggregator,
        clock: Callable[[], datetime] = utc_now,
        ttl_ms: int = CACHE_TTL_MS,
    ):
        self.store = store
        self.aggregator = aggregator
        self.clock = clock
        self.ttl_ms = ttl_ms

    async def fetch_all_cached(self, token: str) -> List[AlertLog]:
        now_ms = epoch_ms(self.clock())

        # Any problem reading the cache is just a miss
        try:
            raw = await self.store.get(ALERTS_CACHE_KEY)
            if raw:
                entry = CacheEntry.model_validate_json(raw)
                if now_ms - entry.timestamp < self.ttl_ms:
                    logger.debug(f"⚡ Cache hit ({len(entry.data)} alerts)")
                    return entry.data
        except Exception:
            logger.warning("⚠️  Ignoring unreadable alerts cache", exc_info=True)

        fresh = await self.aggregator.fetch_all(token)

        try:
            entry = CacheEntry(timestamp=now_ms, data=fresh)
            await self.store.set(ALERTS_CACHE_KEY, entry.model_dump_json())
        except Exception:
            logger.warning("⚠️  Could not write alerts cache", exc_info=True)
        return fresh
