"""
ROOFWATCH Poll Loop

Drives the state machine at a fixed cadence: read the limit switches, then
hand the reading to the state machine. One tick always finishes before the
next one starts.
"""

import asyncio
import logging
from typing import Optional

from roofwatch import constants
from roofwatch.logging_config import log_exception
from services.enclosure.roof_state_machine import RoofStateMachine
from services.enclosure.sensor_reader import SensorReader, SensorReading

logger = logging.getLogger("roofwatch.enclosure.poll")


class PollLoop:
    """
    Periodic sensor poll for the roof.

    Usage:
        loop = PollLoop(reader, machine, interval=1.0)
        loop.start()
        ...
        await loop.stop()
    """

    def __init__(self,
                 reader: SensorReader,
                 machine: RoofStateMachine,
                 interval: float = constants.POLL_INTERVAL_SEC):
        self._reader = reader
        self._machine = machine
        self.interval = interval
        self.tick_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> Optional[SensorReading]:
        """
        Run one poll.

        Returns:
            The debounced reading passed to the state machine (None while
            the switches settle)
        """
        reading = self._reader.read()
        await self._machine.on_tick(reading)
        self.tick_count += 1
        return reading

    def start(self) -> None:
        """Start polling in a background task."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.debug(f"Poll loop started, interval {self.interval:.2f}s")

    async def stop(self) -> None:
        """Stop polling and wait for the current tick to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Poll loop stopped")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log_exception(logger, "Poll tick failed", e, include_traceback=False)

            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.interval - elapsed))
