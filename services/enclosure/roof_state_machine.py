"""
ROOFWATCH Roof State Machine

Reconciles the commanded motion intent with the sensed limit switches and
derives the roof park state.

Safety rules:
- The sensed limit always wins over remembered or commanded state
- A position the switches do not support is reported as UNKNOWN, never
  guessed
- State only changes after the actuator confirms a command
- Both limits engaged at once is a sensor fault: the tick is skipped
- AC goes off before the roof opens and on only after it has closed

All rule evaluations (poll ticks and host commands) run one at a time behind
a single asyncio.Lock. An abort request jumps ahead of any tick that is
still waiting for the lock.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from roofwatch.config import RoofConfig
from roofwatch.exceptions import CommandTimeoutError, PreconditionError
from roofwatch.types import (
    ClimateState,
    CommandOutcome,
    CommandStatus,
    Direction,
    EventCallback,
    LimitSwitch,
    MotionAction,
    MotionCommand,
    MotionIntent,
    ParkState,
)
from services.enclosure.actuators import ClimateActuator, MotionActuator
from services.enclosure.park_store import ParkStore
from services.enclosure.sensor_reader import SensorReading

logger = logging.getLogger("roofwatch.enclosure.roof")

_NO_LIMITS = SensorReading(open=LimitSwitch.DISENGAGED, closed=LimitSwitch.DISENGAGED)

_INTENT_FOR = {
    Direction.OPEN: MotionIntent.OPENING,
    Direction.CLOSE: MotionIntent.CLOSING,
}


@dataclass
class RoofStatus:
    """Snapshot of the roof for the host layer."""
    park_state: ParkState
    motion_intent: MotionIntent = MotionIntent.IDLE
    timestamp: datetime = field(default_factory=datetime.now)

    # Last stable limit switch states
    open_limit: bool = False
    closed_limit: bool = False

    climate_state: ClimateState = ClimateState.OFF
    weather_danger: bool = False
    sensor_fault_ticks: int = 0

    @property
    def is_parked(self) -> bool:
        return self.park_state is ParkState.PARKED

    @property
    def is_unparked(self) -> bool:
        return self.park_state is ParkState.UNPARKED

    @property
    def is_moving(self) -> bool:
        return self.motion_intent is not MotionIntent.IDLE

    @property
    def can_open(self) -> bool:
        return not self.open_limit and not self.weather_danger

    @property
    def can_close(self) -> bool:
        return not self.closed_limit


class RoofStateMachine:
    """
    Roll-off roof reconciliation engine.

    Usage:
        machine = RoofStateMachine(relay, ac, config.roof, ParkStore(path))
        await machine.initialize(reader.prime())

        status = await machine.unpark()     # BUSY, AC off, motor opening
        await machine.on_tick(reader.read())  # called by the poll loop

    Event callbacks receive (event, RoofStatus) for "opening", "closing",
    "parked", "unparked", "unknown" and "aborted". They run inside the
    evaluation lock and must not await roof commands themselves.
    """

    def __init__(self,
                 motion: MotionActuator,
                 climate: ClimateActuator,
                 config: Optional[RoofConfig] = None,
                 park_store: Optional[ParkStore] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize state machine.

        Args:
            motion: Motor relay
            climate: AC relay
            config: Roof settings (timeouts, fault threshold)
            park_store: Park state persistence; loaded here, once
            clock: Monotonic clock, replaceable in tests
        """
        self.config = config or RoofConfig()
        self._motion = motion
        self._climate = climate
        self._store = park_store
        self._clock = clock

        self._park_state = park_store.load() if park_store else ParkState.UNKNOWN
        self._intent = MotionIntent.IDLE
        self._limits = _NO_LIMITS
        self._weather_danger = False
        self._fault_ticks = 0
        self._motion_started: Optional[float] = None

        self._lock = asyncio.Lock()
        self._abort_pending = 0
        self._callbacks: List[EventCallback] = []

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def park_state(self) -> ParkState:
        return self._park_state

    @property
    def motion_intent(self) -> MotionIntent:
        return self._intent

    @property
    def limits(self) -> SensorReading:
        """Limit states the machine is currently acting on."""
        return self._limits

    @property
    def weather_danger(self) -> bool:
        return self._weather_danger

    @property
    def sensor_fault_ticks(self) -> int:
        """Consecutive implausible readings."""
        return self._fault_ticks

    @property
    def status(self) -> RoofStatus:
        return RoofStatus(
            park_state=self._park_state,
            motion_intent=self._intent,
            open_limit=self._limits.open_engaged,
            closed_limit=self._limits.closed_engaged,
            climate_state=self._climate.state,
            weather_danger=self._weather_danger,
            sensor_fault_ticks=self._fault_ticks,
        )

    def set_weather_danger(self, danger: bool) -> None:
        """Weather interlock input. While True the roof refuses to open."""
        if danger != self._weather_danger:
            level = logging.WARNING if danger else logging.INFO
            logger.log(level, f"Weather danger {'raised' if danger else 'cleared'}")
        self._weather_danger = danger

    # =========================================================================
    # STARTUP
    # =========================================================================

    async def initialize(self, reading: Optional[SensorReading]) -> ParkState:
        """
        Reconcile the loaded park state with the switches at startup.

        Args:
            reading: First stable reading (None if the switches never settled)

        Returns:
            Park state after reconciliation
        """
        async with self._lock:
            if reading is None or reading.implausible:
                logger.warning(
                    f"No usable limit switch reading at startup, "
                    f"keeping stored park state {self._park_state.value}"
                )
                return self._park_state

            self._limits = reading
            if reading.neither_engaged:
                logger.warning("Parking status is unknown.")
                await self._set_park_state(ParkState.UNKNOWN)
            elif reading.closed_engaged:
                await self._set_park_state(ParkState.PARKED)
            else:
                await self._set_park_state(ParkState.UNPARKED)

            logger.info(f"Roof initialized: {self._park_state.value} ({reading})")
            return self._park_state

    # =========================================================================
    # HOST COMMANDS
    # =========================================================================

    async def move(self, direction: Direction,
                   command: MotionCommand = MotionCommand.START) -> CommandStatus:
        """
        Start moving the roof, or stop it.

        Returns:
            BUSY when the motor was started (completion is seen by polling),
            ALERT when refused or the relay did not accept the command,
            OK/ALERT from abort() for MotionCommand.STOP
        """
        if command is MotionCommand.STOP:
            return await self.abort()

        async with self._lock:
            return await self._start_motion(direction)

    async def park(self) -> CommandStatus:
        """Close the roof."""
        status = await self.move(Direction.CLOSE)
        if status is CommandStatus.BUSY:
            logger.info("Roll off is parking...")
        return status

    async def unpark(self) -> CommandStatus:
        """Open the roof. The AC is switched off before the motor starts."""
        status = await self.move(Direction.OPEN)
        if status is CommandStatus.BUSY:
            logger.info("Roll off is unparking...")
        return status

    async def abort(self) -> CommandStatus:
        """
        Stop the motor unconditionally.

        Abort runs ahead of any tick still waiting for the evaluation lock,
        but it cannot interrupt a relay call already in flight. Worst-case
        latency before STOP is sent is therefore one roof.command_timeout.

        Returns:
            OK if the relay accepted STOP, ALERT otherwise
        """
        self._abort_pending += 1
        try:
            async with self._lock:
                return await self._abort_locked()
        finally:
            self._abort_pending -= 1

    async def set_climate(self, state: ClimateState) -> CommandStatus:
        """Direct user override of the AC unit."""
        async with self._lock:
            outcome = await self._command_climate(state)
            return CommandStatus.OK if outcome.accepted else CommandStatus.ALERT

    # =========================================================================
    # POLL TICK
    # =========================================================================

    async def on_tick(self, reading: Optional[SensorReading]) -> None:
        """
        Evaluate the transition rules for one poll.

        Args:
            reading: Debounced reading, or None while the switches settle
        """
        if self._abort_pending:
            logger.debug("Abort pending, skipping poll")
            return

        async with self._lock:
            if self._abort_pending:
                logger.debug("Abort pending, skipping poll")
                return

            if reading is None:
                pass
            elif reading.implausible:
                self._record_sensor_fault(reading)
            else:
                self._clear_sensor_fault()
                self._limits = reading

                if self._intent is MotionIntent.OPENING:
                    await self._check_opened(reading)
                elif self._intent is MotionIntent.CLOSING:
                    await self._check_closed(reading)
                else:
                    await self._reconcile_idle(reading)

            if self._motion_timed_out():
                logger.error(
                    f"Roof did not reach a limit within {self.config.motion_timeout:.0f}s, "
                    f"aborting motion"
                )
                await self._abort_locked()

    async def _check_opened(self, reading: SensorReading) -> None:
        if not reading.open_engaged:
            return

        logger.info("Roof is open.")
        outcome = await self._command_motion(MotionAction.STOP)
        if not outcome.accepted:
            return

        self._end_motion()
        await self._set_park_state(ParkState.UNPARKED)

    async def _check_closed(self, reading: SensorReading) -> None:
        if not reading.closed_engaged:
            return

        logger.info("Roof is closed.")
        outcome = await self._command_motion(MotionAction.STOP)
        if not outcome.accepted:
            return

        self._end_motion()
        await self._set_park_state(ParkState.PARKED)
        await self._command_climate(ClimateState.ON)

    async def _reconcile_idle(self, reading: SensorReading) -> None:
        if reading.closed_engaged:
            if self._park_state is not ParkState.PARKED:
                logger.info("Closed limit switch engaged, roof is parked.")
                await self._set_park_state(ParkState.PARKED)
                await self._command_climate(ClimateState.ON)
        elif reading.open_engaged:
            if self._park_state is not ParkState.UNPARKED:
                logger.info("Open limit switch engaged, roof is unparked.")
                await self._set_park_state(ParkState.UNPARKED)
                await self._command_climate(ClimateState.OFF)
        elif self._park_state is not ParkState.UNKNOWN:
            logger.warning("Roof was moved manually. Park state unknown.")
            await self._set_park_state(ParkState.UNKNOWN)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def _check_move_preconditions(self, direction: Direction) -> None:
        if direction is Direction.OPEN:
            if self._limits.open_engaged:
                raise PreconditionError("Roof is already fully opened.",
                                        direction=direction.value, reason="open_limit")
            if self._weather_danger:
                raise PreconditionError(
                    "Weather conditions are in the danger zone. Cannot open roof.",
                    direction=direction.value, reason="weather",
                )
        elif self._limits.closed_engaged:
            raise PreconditionError("Roof is already fully closed.",
                                    direction=direction.value, reason="closed_limit")

    async def _start_motion(self, direction: Direction) -> CommandStatus:
        try:
            self._check_move_preconditions(direction)
        except PreconditionError as e:
            logger.warning(e.message)
            return CommandStatus.ALERT

        intent = _INTENT_FOR[direction]
        if self._intent is intent:
            logger.info(f"Roof is already {intent.value}")
            return CommandStatus.BUSY

        if direction is Direction.OPEN:
            outcome = await self._command_climate(ClimateState.OFF)
            if not outcome.accepted:
                logger.error("Cannot open roof while the AC could not be switched off")
                return CommandStatus.ALERT

        # Both limits will release once the roof moves; re-sensed on later polls
        previous_limits = self._limits
        self._limits = _NO_LIMITS

        outcome = await self._command_motion(MotionAction.for_direction(direction))
        if not outcome.accepted:
            self._limits = previous_limits
            return CommandStatus.ALERT

        self._intent = intent
        self._motion_started = self._clock()
        await self._emit(intent.value)
        return CommandStatus.BUSY

    async def _abort_locked(self) -> CommandStatus:
        outcome = await self._command_motion(MotionAction.STOP)
        if not outcome.accepted:
            return CommandStatus.ALERT

        was = self._intent
        self._end_motion()
        if self._limits.neither_engaged:
            await self._set_park_state(ParkState.UNKNOWN)

        logger.warning(f"Roof motion aborted (was {was.value})")
        await self._emit("aborted")
        return CommandStatus.OK

    def _end_motion(self) -> None:
        self._intent = MotionIntent.IDLE
        self._motion_started = None

    def _motion_timed_out(self) -> bool:
        if self._motion_started is None or self.config.motion_timeout is None:
            return False
        return self._clock() - self._motion_started > self.config.motion_timeout

    async def _set_park_state(self, state: ParkState) -> None:
        if state is self._park_state:
            return

        logger.info(f"Park state: {self._park_state.value} -> {state.value}")
        self._park_state = state
        if self._store is not None:
            self._store.save(state)
        await self._emit(state.value)

    # =========================================================================
    # SENSOR FAULTS
    # =========================================================================

    def _record_sensor_fault(self, reading: SensorReading) -> None:
        self._fault_ticks += 1
        logger.debug(f"Implausible limit switch reading ({reading}), skipping poll")
        if self._fault_ticks == self.config.sensor_fault_warn_ticks:
            logger.warning(
                f"Both limit switches engaged for {self._fault_ticks} consecutive "
                f"polls, check limit switch wiring"
            )

    def _clear_sensor_fault(self) -> None:
        if self._fault_ticks >= self.config.sensor_fault_warn_ticks:
            logger.info("Limit switch readings are plausible again")
        self._fault_ticks = 0

    # =========================================================================
    # ACTUATOR CALLS
    # =========================================================================

    async def _bounded(self, name: str, call) -> CommandOutcome:
        try:
            return await asyncio.wait_for(call, timeout=self.config.command_timeout)
        except asyncio.TimeoutError:
            err = CommandTimeoutError(f"{name} command timed out",
                                      command=name,
                                      timeout_seconds=self.config.command_timeout)
            return CommandOutcome.rejected(str(err))

    async def _command_motion(self, action: MotionAction) -> CommandOutcome:
        outcome = await self._bounded(f"motion {action.value}", self._motion.command(action))
        if not outcome.accepted:
            logger.error(f"Relay rejected {action.value}: {outcome.reason}")
        return outcome

    async def _command_climate(self, state: ClimateState) -> CommandOutcome:
        outcome = await self._bounded(f"climate {state.value}", self._climate.command(state))
        if not outcome.accepted:
            logger.error(f"AC rejected {state.value}: {outcome.reason}")
        return outcome

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def register_callback(self, callback: EventCallback) -> None:
        """Register callback for roof events."""
        self._callbacks.append(callback)

    async def _emit(self, event: str) -> None:
        status = self.status
        for callback in self._callbacks:
            try:
                if asyncio.iscoroutinefunction(callback):
                    await callback(event, status)
                else:
                    callback(event, status)
            except Exception as e:
                logger.error(f"Callback error for '{event}': {e}")
