"""
ROOFWATCH Roll-Off Roof Controller
Host-facing owner of the roof state machine and its hardware

Wiring:
- NC limit switches on GPIO inputs, read through a debounced SensorReader
- Motor switched by a web relay (or the simulator)
- AC unit on a GPIO-driven solid state relay
- Park state persisted to a JSON file between runs
- PollLoop drives the state machine at the configured cadence

One RoofController is built by the application and kept for the process
lifetime; every part is injected into the state machine rather than
reached through globals.
"""

import logging
from typing import Optional

from roofwatch.config import RoofwatchConfig
from roofwatch.exceptions import ConfigurationError
from roofwatch.types import (
    ClimateState,
    CommandStatus,
    Direction,
    EventCallback,
    MotionCommand,
    ParkState,
)
from services.enclosure.actuators import (
    ClimateActuator,
    GpioClimateActuator,
    HttpRelayMotionActuator,
    MotionActuator,
)
from services.enclosure.gpio import GPIOBackend, GPIOInterface
from services.enclosure.park_store import ParkStore
from services.enclosure.poll_loop import PollLoop
from services.enclosure.roof_state_machine import RoofStateMachine, RoofStatus
from services.enclosure.sensor_reader import SensorReader
from services.simulators.roof_simulator import RoofSimulator, SimulatedMotionActuator

logger = logging.getLogger("roofwatch.enclosure")


class RoofController:
    """
    Roll-off roof automation.

    Usage:
        roof = RoofController(load_config())
        await roof.connect()

        await roof.unpark()          # BUSY: AC off, roof opening
        ...
        await roof.park()            # BUSY: roof closing, AC on when closed
        await roof.abort()           # OK: motor stopped

        await roof.disconnect()
    """

    def __init__(self,
                 config: Optional[RoofwatchConfig] = None,
                 gpio: Optional[GPIOInterface] = None,
                 motion: Optional[MotionActuator] = None,
                 climate: Optional[ClimateActuator] = None,
                 park_store: Optional[ParkStore] = None):
        """
        Initialize roof controller.

        Args:
            config: Full configuration (defaults if None)
            gpio: GPIO interface (built from config.gpio if None)
            motion: Motor relay (built from config.relay if None)
            climate: AC relay (GPIO-driven if None)
            park_store: Park state persistence (config.roof.park_data_file if None)
        """
        self.config = config or RoofwatchConfig()

        self.gpio = gpio or GPIOInterface(
            backend=GPIOBackend(self.config.gpio.backend),
            open_limit_pin=self.config.gpio.open_limit_pin,
            closed_limit_pin=self.config.gpio.closed_limit_pin,
            ac_pin=self.config.gpio.ac_pin,
        )
        self.simulator: Optional[RoofSimulator] = None
        self.motion = motion or self._create_motion_actuator()
        self.climate = climate or GpioClimateActuator(self.gpio)
        self.park_store = park_store or ParkStore(self.config.roof.park_data_file)

        self.reader = SensorReader(self.gpio)
        self.machine = RoofStateMachine(
            self.motion, self.climate, self.config.roof, self.park_store
        )
        self.poll_loop = PollLoop(self.reader, self.machine, self.config.roof.poll_interval)

        self._connected = False

    def _create_motion_actuator(self) -> MotionActuator:
        if self.config.relay.type == "simulator":
            if self.gpio.backend != GPIOBackend.MOCK:
                raise ConfigurationError(
                    "Simulated relay requires the mock GPIO backend",
                    config_key="relay.type",
                )
            self.simulator = RoofSimulator(
                self.gpio,
                travel_time=self.config.simulator.travel_time,
                initial_position=self.config.simulator.initial_position,
            )
            return SimulatedMotionActuator(self.simulator)
        if self.gpio.backend == GPIOBackend.MOCK:
            # Mock limit switches never follow a real motor
            raise ConfigurationError(
                "HTTP relay requires a hardware GPIO backend (rpigpio or gpiozero); "
                "use relay.type 'simulator' with the mock backend",
                config_key="relay.type",
            )
        return HttpRelayMotionActuator(self.config.relay)

    @property
    def name(self) -> str:
        return self.config.roof.device_name

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def park_state(self) -> ParkState:
        return self.machine.park_state

    @property
    def status(self) -> RoofStatus:
        return self.machine.status

    # =========================================================================
    # CONNECTION
    # =========================================================================

    async def connect(self) -> bool:
        """
        Bring up hardware, reconcile the stored park state and start polling.

        Returns:
            True when connected
        """
        if self._connected:
            return True

        logger.info(f"Connecting {self.name} ({self.gpio.backend.value} GPIO)")
        self.gpio.initialize()
        if self.simulator is not None:
            self.simulator.attach()

        reading = self.reader.prime()

        if isinstance(self.climate, GpioClimateActuator):
            ac_state = self.climate.sync_from_output()
            logger.info(f"AC is {ac_state.value}")

        await self.machine.initialize(reading)
        self.poll_loop.start()

        self._connected = True
        logger.info(f"{self.name} connected. Park state: {self.park_state.value}")
        return True

    async def disconnect(self) -> None:
        """Stop polling, persist the park state and release hardware."""
        if not self._connected:
            return

        await self.poll_loop.stop()
        self.park_store.save(self.machine.park_state)

        close = getattr(self.motion, "close", None)
        if close is not None:
            await close()

        self.gpio.cleanup()
        self._connected = False
        logger.info(f"{self.name} disconnected")

    def _check_connected(self, operation: str) -> bool:
        if not self._connected:
            logger.warning(f"{operation} refused: roof controller not connected")
        return self._connected

    # =========================================================================
    # ROOF OPERATION
    # =========================================================================

    async def move(self, direction: Direction,
                   command: MotionCommand = MotionCommand.START) -> CommandStatus:
        if not self._check_connected(f"move {direction.value}"):
            return CommandStatus.ALERT
        return await self.machine.move(direction, command)

    async def park(self) -> CommandStatus:
        """Close the roof (BUSY until the closed limit is sensed)."""
        if not self._check_connected("park"):
            return CommandStatus.ALERT
        return await self.machine.park()

    async def unpark(self) -> CommandStatus:
        """Open the roof (BUSY until the open limit is sensed)."""
        if not self._check_connected("unpark"):
            return CommandStatus.ALERT
        return await self.machine.unpark()

    async def abort(self) -> CommandStatus:
        """Stop roof motion immediately."""
        if not self._check_connected("abort"):
            return CommandStatus.ALERT
        return await self.machine.abort()

    async def set_climate(self, state: ClimateState) -> CommandStatus:
        """Switch the AC on or off, independent of roof motion."""
        if not self._check_connected(f"AC {state.value}"):
            return CommandStatus.ALERT
        return await self.machine.set_climate(state)

    def set_weather_danger(self, danger: bool) -> None:
        """Weather interlock input; opening is refused while True."""
        self.machine.set_weather_danger(danger)

    def register_callback(self, callback: EventCallback) -> None:
        """Register callback for roof events (see RoofStateMachine)."""
        self.machine.register_callback(callback)
