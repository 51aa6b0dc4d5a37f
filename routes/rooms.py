# ─────────────────────────────────────────────────────────────────
# routes/rooms.py — Room Configuration, Thresholds & Simulated Readings
#
# Maintenance endpoints for local state. None of these talk to the
# backend; they only read and write the key-value store.
# ─────────────────────────────────────────────────────────────────

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from models import Room, Threshold
from routes.deps import get_services
from services import Services

logger = logging.getLogger("routes.rooms")

router = APIRouter(
    prefix="/rooms",
    tags=["Rooms"]
)


# ─────────────────────────────────────────────────────────────────
# Room configuration (real vs. dummy)
# ─────────────────────────────────────────────────────────────────

@router.get("/configuration")
async def get_configuration(services: Services = Depends(get_services)):
    config = await services.classifier.get_configuration()
    return config.model_dump(mode="json", by_alias=True)


@router.post("/configuration/initialize")
async def initialize_configuration(rooms: List[Room], services: Services = Depends(get_services)):
    """
    Re-establish the configuration after a reset.

    The first room in the body becomes the real room; all others are
    dummies. Any existing configuration is overwritten.
    """
    config = await services.classifier.initialize(rooms)
    return config.model_dump(mode="json", by_alias=True)


@router.post("/configuration/reset")
async def reset_configuration(services: Services = Depends(get_services)):
    """Wipe configuration, simulated data, alert cache, alert log and thresholds."""
    if not await services.classifier.reset_all():
        raise HTTPException(
            status_code=500,
            detail="Reset failed; local state may be partially cleared."
        )
    return {"message": "Room configuration reset", "status": "reset"}


@router.get("/configuration/debug")
async def debug_configuration(services: Services = Depends(get_services)):
    return await services.classifier.debug_snapshot()


# ─────────────────────────────────────────────────────────────────
# Thresholds
# ─────────────────────────────────────────────────────────────────

@router.get("/{room_id}/threshold")
async def get_threshold(room_id: int, services: Services = Depends(get_services)):
    threshold = await services.thresholds.get(room_id)
    if threshold is None:
        raise HTTPException(
            status_code=404,
            detail=f"No threshold configured for room {room_id}."
        )
    return {"room_id": room_id, **threshold.model_dump()}


@router.put("/{room_id}/threshold")
async def put_threshold(room_id: int, threshold: Threshold, services: Services = Depends(get_services)):
    # min < max is enforced by the Threshold model (422 otherwise)
    await services.thresholds.save(room_id, threshold)
    return {"room_id": room_id, **threshold.model_dump()}


# ─────────────────────────────────────────────────────────────────
# Simulated readings
# ─────────────────────────────────────────────────────────────────

@router.get("/{room_id}/reading")
async def get_reading(room_id: int, name: str = "", services: Services = Depends(get_services)):
    """
    The current simulated reading and its last-24 history for a dummy room.

    Rooms with a physical sensor are never simulated: 404.
    """
    if not await services.classifier.is_dummy(room_id):
        raise HTTPException(
            status_code=404,
            detail=f"Room {room_id} is not a simulated room."
        )
    reading = await services.simulator.get_reading(room_id, name)
    return {
        "room_id": room_id,
        **reading.model_dump(mode="json", by_alias=True),
    }
