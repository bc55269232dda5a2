"""
ROOFWATCH Roof Simulator

Simulates the roll-off roof behind the mock GPIO backend: a motor that
travels between the two limits over a configurable time, and limit switches
that pull their input LOW at the end of travel, cutting motor power just like
the NC switches in the real roof.

Used by the --simulator CLI mode and the integration tests.
"""

import asyncio
import logging
from typing import List, Optional

from roofwatch.types import CommandOutcome, Direction, MotionAction
from services.enclosure.gpio import HIGH, LOW, GPIOInterface

logger = logging.getLogger("roofwatch.simulators.roof")

# Position units: 0.0 fully closed, 1.0 fully open
CLOSED_POSITION = 0.0
OPEN_POSITION = 1.0

_INITIAL_POSITIONS = {
    "closed": CLOSED_POSITION,
    "open": OPEN_POSITION,
    "between": 0.5,
}


class RoofSimulator:
    """Simulated roof driving mock limit switch levels."""

    def __init__(self,
                 gpio: GPIOInterface,
                 travel_time: float = 5.0,
                 initial_position: str = "closed",
                 step: float = 0.02):
        """
        Args:
            gpio: Mock-backend GPIO interface whose limit levels are driven
            travel_time: Seconds for a full open or close
            initial_position: "closed", "open" or "between"
            step: Simulation step in seconds
        """
        self._gpio = gpio
        self.travel_time = travel_time
        self.position = _INITIAL_POSITIONS[initial_position]
        self.step = step
        self.direction: Optional[Direction] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def moving(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self) -> None:
        """Publish the current position on the mock inputs."""
        self._apply_levels()

    def move_manually(self, position: float) -> None:
        """Place the roof somewhere without going through the motor."""
        self.position = min(OPEN_POSITION, max(CLOSED_POSITION, position))
        self._apply_levels()

    def _apply_levels(self) -> None:
        open_level = LOW if self.position >= OPEN_POSITION else HIGH
        closed_level = LOW if self.position <= CLOSED_POSITION else HIGH
        self._gpio.mock_set_levels(open_level=open_level, closed_level=closed_level)

    async def start(self, direction: Direction) -> None:
        await self.stop()
        self.direction = direction
        self._task = asyncio.create_task(self._travel(direction))
        logger.debug(f"Simulated motor running {direction.value}")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self.direction = None

    async def _travel(self, direction: Direction) -> None:
        sign = 1.0 if direction is Direction.OPEN else -1.0
        target = OPEN_POSITION if direction is Direction.OPEN else CLOSED_POSITION
        while self.position != target:
            await asyncio.sleep(self.step)
            delta = sign * self.step / self.travel_time
            self.position = min(OPEN_POSITION, max(CLOSED_POSITION, self.position + delta))
            self._apply_levels()
        # Limit switch has cut motor power
        logger.debug(f"Simulated roof reached {direction.value} limit")


class SimulatedMotionActuator:
    """
    Motion relay stand-in that drives a RoofSimulator.

    Set reject_commands to make every command fail like a relay that cannot
    be reached.
    """

    def __init__(self, simulator: RoofSimulator):
        self.simulator = simulator
        self.reject_commands = False
        self.commands: List[MotionAction] = []

    async def command(self, action: MotionAction) -> CommandOutcome:
        self.commands.append(action)
        if self.reject_commands:
            return CommandOutcome.rejected("simulated relay failure")

        if action is MotionAction.STOP:
            await self.simulator.stop()
        elif action is MotionAction.DRIVE_OPEN:
            await self.simulator.start(Direction.OPEN)
        else:
            await self.simulator.start(Direction.CLOSE)
        return CommandOutcome.ok()

    async def close(self) -> None:
        await self.simulator.stop()
