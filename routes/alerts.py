# ─────────────────────────────────────────────────────────────────
# routes/alerts.py — Alert Endpoints
#
# Three views over the same aggregation:
#   GET /alerts          → cached for two minutes (normal screen refresh)
#   GET /alerts/live     → always hits the backend
#   GET /alerts/history  → 30-day deduplicated log
#
# A backend failure is surfaced as 502 so the client can show an
# error state instead of an empty list.
# ─────────────────────────────────────────────────────────────────

import logging
from typing import Awaitable, Callable, List

import httpx
from fastapi import APIRouter, Depends, HTTPException

from models import AlertLog
from routes.deps import bearer_token, get_services
from services import Services
from timefmt import time_ago, utc_now

logger = logging.getLogger("routes.alerts")

router = APIRouter(
    prefix="/alerts",
    tags=["Alerts"]
)


async def _respond(fetch: Callable[[str], Awaitable[List[AlertLog]]], token: str):
    try:
        alerts = await fetch(token)
    except (httpx.HTTPError, ValueError) as exc:
        logger.error(f"❌ Alert fetch failed: {exc!r}")
        raise HTTPException(
            status_code=502,
            detail="Could not load alerts from the temperature backend."
        )

    now = utc_now()
    return {
        "alerts": [
            {**alert.model_dump(mode="json"), "triggered_ago": time_ago(alert.triggered_at, now)}
            for alert in alerts
        ],
        "total": len(alerts)
    }


@router.get("")
async def list_alerts(
    token: str = Depends(bearer_token),
    services: Services = Depends(get_services),
):
    """Real and synthetic alerts, newest first, served from the 2-minute cache."""
    return await _respond(services.cache.fetch_all_cached, token)


@router.get("/live")
async def list_live_alerts(
    token: str = Depends(bearer_token),
    services: Services = Depends(get_services),
):
    return await _respond(services.aggregator.fetch_all, token)


@router.get("/history")
async def list_alert_history(
    token: str = Depends(bearer_token),
    services: Services = Depends(get_services),
):
    """
    Every alert seen in the last 30 days, deduplicated by id.

    Each call also folds the current backend view into the stored log.
    """
    return await _respond(services.alert_log.fetch_all_persistent, token)
