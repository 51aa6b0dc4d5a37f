# ─────────────────────────────────────────────────────────────────
# alerts.py — Alert Synthesis & Aggregation
#
# Real alerts come from the backend. Dummy rooms have no sensor, so
# their alerts are synthesized here from the simulated reading and
# the room's threshold. fetch_all() returns both kinds as one list,
# newest first.
#
# This is the primary fetch path: backend failures propagate to the
# caller untouched.
# ─────────────────────────────────────────────────────────────────

import logging
from typing import Iterable, List, Optional

from models import AlertLog, Room, SimulatedReading, Threshold
from remote import RemoteAlertSource
from rooms import RoomClassifier
from simulator import TemperatureSimulator
from thresholds import ThresholdStore
from timefmt import parse_iso

logger = logging.getLogger("alerts")


def synthesize_alert(
    room: Room, threshold: Optional[Threshold], reading: SimulatedReading
) -> Optional[AlertLog]:
    """
    Build a synthetic alert if the reading is outside the threshold.

    The band is inclusive: a reading exactly at min or max raises
    nothing. No threshold means no alert.
    """
    if threshold is None:
        return None

    temperature = reading.current_temperature
    if threshold.min_temperature <= temperature <= threshold.max_temperature:
        return None

    return AlertLog(
        id=f"dummy-{room.id}-{reading.last_updated}",
        room_id=room.id,
        sensor_id=None,
        temperature_value=temperature,
        alert_type="low" if temperature < threshold.min_temperature else "high",
        triggered_at=reading.last_updated,
        status="Active",
        room=room,
    )


def sort_newest_first(alerts: Iterable[AlertLog]) -> List[AlertLog]:
    # sorted() is stable: equal timestamps keep their input order
    return sorted(alerts, key=lambda alert: parse_iso(alert.triggered_at), reverse=True)


class AlertAggregator:
    def __init__(
        self,
        remote: RemoteAlertSource,
        classifier: RoomClassifier,
        simulator: TemperatureSimulator,
        thresholds: ThresholdStore,
    ):
        self.remote = remote
        self.classifier = classifier
        self.simulator = simulator
        self.thresholds = thresholds

    async def fetch_all(self, token: str) -> List[AlertLog]:
        """
        Real alerts from the backend plus synthetic alerts for dummy rooms.

        Flow:
        1. Fetch rooms and alert logs (errors propagate)
        2. Attach room details to each real alert
        3. Synthesize alerts for every dummy room
        4. Sort newest first
        """
        rooms = await self.remote.fetch_rooms(token)
        real_alerts = await self.remote.fetch_alert_logs(token)

        rooms_by_id = {room.id: room for room in rooms}
        alerts = [
            alert.model_copy(update={"room": rooms_by_id.get(alert.room_id)})
            for alert in real_alerts
        ]

        await self.classifier.discover(rooms)

        synthetic = 0
        for room in rooms:
            if not await self.classifier.is_dummy(room.id):
                continue
            reading = await self.simulator.get_reading(room.id, room.name)
            threshold = await self.thresholds.get(room.id)
            alert = synthesize_alert(room, threshold, reading)
            if alert is not None:
                alerts.append(alert)
                synthetic += 1
                logger.warning(
                    f"🚨 Room {room.id} ({room.name}) is {alert.alert_type.upper()}: "
                    f"{alert.temperature_value}°C outside "
                    f"{threshold.min_temperature}–{threshold.max_temperature}°C"
                )

        logger.info(
            f"📥 Aggregated {len(real_alerts)} real + {synthetic} synthetic alerts "
            f"across {len(rooms)} rooms"
        )
        return sort_newest_first(alerts)
