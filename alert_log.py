# ─────────────────────────────────────────────────────────────────
# alert_log.py — Durable Alert History
#
# Every alert ever seen is kept under "alerts_persistent_log_v1" for
# 30 days, deduplicated by id. Each refresh goes:
#   fetch → load → merge → prune → persist → sort
#
# Merge is last-writer-wins on id. The log is append/overwrite only;
# nothing here resolves an alert.
# ─────────────────────────────────────────────────────────────────

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, List

from pydantic import ValidationError

from alerts import AlertAggregator, sort_newest_first
from database import ALERTS_PERSISTENT_LOG_KEY, KeyLocks, KeyValueStore, read_json, write_json
from models import AlertLog
from timefmt import parse_iso, utc_now

logger = logging.getLogger("alert_log")

RETENTION = timedelta(days=30)


def merge_alerts(existing: Iterable[AlertLog], incoming: Iterable[AlertLog]) -> List[AlertLog]:
    """
    Union of two alert lists keyed by id; `incoming` wins on collision.

    Order is first appearance, so merging a list with itself is a no-op.
    """
    merged = {}
    for alert in existing:
        merged[alert.id] = alert
    for alert in incoming:
        previous = merged.get(alert.id)
        if previous is not None and previous != alert:
            logger.debug(f"Alert {alert.id!r} replaced by a newer record with different content")
        merged[alert.id] = alert
    return list(merged.values())


def prune_alerts(alerts: Iterable[AlertLog], now: datetime, retention: timedelta = RETENTION) -> List[AlertLog]:
    cutoff = now - retention
    return [alert for alert in alerts if parse_iso(alert.triggered_at) >= cutoff]


class PersistentAlertLog:
    def __init__(
        self,
        store: KeyValueStore,
        locks: KeyLocks,
        aggregator: AlertAggregator,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.locks = locks
        self.aggregator = aggregator
        self.clock = clock

    async def load(self) -> List[AlertLog]:
        raw = await read_json(self.store, ALERTS_PERSISTENT_LOG_KEY, [])
        if not isinstance(raw, list):
            logger.warning("⚠️  Persistent alert log is not a list, starting empty")
            return []
        alerts = []
        for item in raw:
            try:
                alerts.append(AlertLog.model_validate(item))
            except ValidationError:
                logger.warning(f"⚠️  Skipping unreadable persisted alert: {item!r}")
        return alerts

    async def fetch_all_persistent(self, token: str) -> List[AlertLog]:
        fresh = await self.aggregator.fetch_all(token)

        async with self.locks.hold(ALERTS_PERSISTENT_LOG_KEY):
            existing = await self.load()
            merged = prune_alerts(merge_alerts(existing, fresh), self.clock())
            dropped = len(existing) + len(fresh) - len(merged)
            await write_json(
                self.store,
                ALERTS_PERSISTENT_LOG_KEY,
                [alert.model_dump(mode="json") for alert in merged],
            )

        logger.info(f"🗂️  Persistent log holds {len(merged)} alerts ({dropped} deduplicated or expired)")
        return sort_newest_first(merged)
