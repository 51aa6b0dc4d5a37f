# ─────────────────────────────────────────────────────────────────
# timer.py — Background Simulator Tick
#
# Dummy-room readings only move when somebody asks for them. This
# background task asks on a fixed interval, so simulated history
# keeps growing even when nobody is looking at the alerts screen.
#
# asyncio.sleep() pauses only this coroutine; the API keeps serving
# requests in between ticks.
# ─────────────────────────────────────────────────────────────────

import asyncio
import logging
from typing import Optional

from rooms import RoomClassifier
from simulator import TemperatureSimulator

logger = logging.getLogger("timer")

# Just past the simulator's 5-minute window, so every tick advances each reading
DEFAULT_TICK_SECONDS = 310


class SimulatorTicker:
    def __init__(
        self,
        classifier: RoomClassifier,
        simulator: TemperatureSimulator,
        interval: float = DEFAULT_TICK_SECONDS,
    ):
        self.classifier = classifier
        self.simulator = simulator
        self.interval = interval
        self.task: Optional[asyncio.Task] = None

    async def tick(self) -> int:
        """Refresh every dummy room once. Returns how many rooms were touched."""
        config = await self.classifier.get_configuration()
        refreshed = 0
        for entry in config.room_order:
            if config.room_types.get(entry.id) != "dummy":
                continue
            await self.simulator.get_reading(entry.id, entry.name)
            refreshed += 1
        return refreshed

    async def run(self):
        """
        Tick forever until cancelled.

        A failing tick is logged and the loop carries on; cancellation
        (app shutdown) ends the loop quietly.
        """
        try:
            while True:
                try:
                    refreshed = await self.tick()
                    logger.debug(f"⏱️  Simulator tick refreshed {refreshed} dummy rooms")
                except Exception:
                    logger.error("❌ Simulator tick failed", exc_info=True)
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            logger.info("⏱️  Simulator ticker stopped")
            raise

    def start(self):
        if self.task is None or self.task.done():
            self.task = asyncio.create_task(self.run())
            logger.info(f"⏱️  Simulator ticker started, every {self.interval:g}s")

    async def stop(self):
        if self.task is None:
            return
        self.task.cancel()
        try:
            await self.task
        except asyncio.CancelledError:
            pass
        self.task = None
