# ─────────────────────────────────────────────────────────────────
# remote.py — Backend API Client
#
# Two calls, both bearer-authenticated:
#   GET /api/rooms       → {"data": [Room, ...]}
#   GET /api/alert-logs  → {"data": [AlertLog, ...]}
#
# Nothing here is caught. Network failures (httpx.HTTPError), bodies
# that are not JSON (ValueError) and payloads of the wrong shape
# (pydantic.ValidationError) all reach the caller, who decides how to
# present them. Status codes are not interpreted.
# ─────────────────────────────────────────────────────────────────

import logging
from typing import List

import httpx

from models import AlertLog, Room

logger = logging.getLogger("remote")

ROOMS_PATH = "/api/rooms"
ALERT_LOGS_PATH = "/api/alert-logs"


class RemoteAlertSource:
    def __init__(self, client: httpx.AsyncClient):
        # base_url and transport are configured on the client by the app
        self.client = client

    async def _get_data(self, path: str, token: str) -> list:
        response = await self.client.get(
            path,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {token}",
            },
        )
        body = response.json()
        data = body.get("data") if isinstance(body, dict) else None
        logger.debug(f"GET {path} → {response.status_code}, {len(data or [])} records")
        return data or []

    async def fetch_rooms(self, token: str) -> List[Room]:
        return [Room.model_validate(item) for item in await self._get_data(ROOMS_PATH, token)]

    async def fetch_alert_logs(self, token: str) -> List[AlertLog]:
        return [AlertLog.model_validate(item) for item in await self._get_data(ALERT_LOGS_PATH, token)]
