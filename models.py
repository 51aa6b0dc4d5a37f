# ─────────────────────────────────────────────────────────────────
# models.py — Data Models (Pydantic Schemas)
#
# Every shape that crosses a boundary lives here: JSON from the
# backend API, JSON we persist in the key-value store, and JSON the
# routes hand back to clients.
#
# Python attributes are snake_case. Records we persist ourselves keep
# their stored key names (currentTemperature, firstRoomId, ...) via
# aliases, so existing storage stays readable.
# ─────────────────────────────────────────────────────────────────

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Room(BaseModel):
    """A physical room as the backend describes it. Identity is `id`."""

    id: int
    name: str
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def blank_description(cls, value):
        # the backend sends null for rooms nobody described
        return "" if value is None else value


class Threshold(BaseModel):
    """
    The safe temperature band for one room.

    A reading exactly at min or max is still in range.
    """

    min_temperature: float
    max_temperature: float

    @model_validator(mode="after")
    def check_band(self):
        if self.min_temperature >= self.max_temperature:
            raise ValueError("min_temperature must be lower than max_temperature")
        return self


class TemperaturePoint(BaseModel):
    temperature: float
    timestamp: str


class SimulatedReading(BaseModel):
    """
    Synthetic telemetry for a room without a physical sensor.

    Stored as:
    {
        "currentTemperature": 23.4,
        "lastUpdated": "2026-03-01T10:34:22.123Z",
        "history": [{"temperature": 22.9, "timestamp": "..."}, ...]
    }
    """

    model_config = ConfigDict(populate_by_name=True)

    current_temperature: float = Field(alias="currentTemperature")
    last_updated: str = Field(alias="lastUpdated")
    history: List[TemperaturePoint] = Field(default_factory=list)


class AlertLog(BaseModel):
    """
    One alert, real or synthetic.

    Real alerts come from the backend with an integer id. Synthetic
    alerts use "dummy-{room_id}-{last_updated}" as their id, which is
    also the dedup key in the persistent log.
    """

    id: Union[int, str]
    room_id: int
    sensor_id: Optional[int] = None
    temperature_value: float
    alert_type: Literal["low", "high"]
    triggered_at: str
    resolved_at: Optional[str] = None
    status: str
    room: Optional[Room] = None


class RoomOrderEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    created_at: str = Field(alias="createdAt")


class RoomConfiguration(BaseModel):
    """
    Which rooms are real and which are simulated.

    Exactly the first discovered room is "real"; every room seen after
    it defaults to "dummy".
    """

    model_config = ConfigDict(populate_by_name=True)

    first_room_id: Optional[int] = Field(default=None, alias="firstRoomId")
    room_order: List[RoomOrderEntry] = Field(default_factory=list, alias="roomOrder")
    # JSON object keys are strings; pydantic coerces them back to int
    room_types: Dict[int, Literal["real", "dummy"]] = Field(default_factory=dict, alias="roomTypes")


class CacheEntry(BaseModel):
    timestamp: int            # epoch milliseconds
    data: List[AlertLog]
