"""
ROOFWATCH Limit Switch Reader

Turns the two raw limit switch inputs into debounced logical switch states.

Debounce: a raw level is only trusted once it has been seen on two
consecutive polls. On the poll where either raw level changes, the new level
is remembered and the whole reading is discarded, so the controller never
acts on a switch that is still in transition.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from roofwatch import constants
from roofwatch.types import LimitSwitch

logger = logging.getLogger("roofwatch.enclosure.sensors")


class LimitInputs(Protocol):
    """Source of raw limit switch levels (satisfied by GPIOInterface)."""

    def read_open_level(self) -> int: ...

    def read_closed_level(self) -> int: ...


@dataclass(frozen=True)
class SensorReading:
    """One stable reading of both limit switches."""
    open: LimitSwitch
    closed: LimitSwitch

    @property
    def open_engaged(self) -> bool:
        return self.open is LimitSwitch.ENGAGED

    @property
    def closed_engaged(self) -> bool:
        return self.closed is LimitSwitch.ENGAGED

    @property
    def implausible(self) -> bool:
        """Both limits engaged at once cannot happen on a real roof."""
        return self.open_engaged and self.closed_engaged

    @property
    def neither_engaged(self) -> bool:
        return not self.open_engaged and not self.closed_engaged

    def __str__(self) -> str:
        return f"open={self.open.value} closed={self.closed.value}"


class SensorReader:
    """
    Debounced reader for the fully-open and fully-closed limit switches.

    Usage:
        reader = SensorReader(gpio)
        reading = reader.read()
        if reading is not None and not reading.implausible:
            ...
    """

    def __init__(self, inputs: LimitInputs):
        self._inputs = inputs

        # Raw levels seen on the previous poll (None until first read)
        self.prev_open_level: Optional[int] = None
        self.prev_closed_level: Optional[int] = None

        # Last debounced logical states
        self.open_switch = LimitSwitch.DISENGAGED
        self.closed_switch = LimitSwitch.DISENGAGED

    @property
    def last_reading(self) -> SensorReading:
        """Most recent debounced switch states."""
        return SensorReading(open=self.open_switch, closed=self.closed_switch)

    def read(self) -> Optional[SensorReading]:
        """
        Poll both switches.

        Returns:
            SensorReading when both raw levels are unchanged since the previous
            poll, None on a poll where either level just changed.
        """
        open_level = self._inputs.read_open_level()
        closed_level = self._inputs.read_closed_level()

        logger.debug(f"full_open_state: {open_level} full_closed_state: {closed_level}")

        changed = (open_level != self.prev_open_level
                   or closed_level != self.prev_closed_level)
        self.prev_open_level = open_level
        self.prev_closed_level = closed_level

        if changed:
            return None

        self.open_switch = LimitSwitch.from_level(open_level)
        self.closed_switch = LimitSwitch.from_level(closed_level)
        reading = self.last_reading

        logger.debug(f"Limit switches: {reading}")
        return reading

    def prime(self, max_reads: int = constants.SETUP_PRIME_READS) -> Optional[SensorReading]:
        """
        Read repeatedly until a stable reading is available.

        Used at startup, when the debounce memo is still empty.

        Returns:
            First stable reading, or None if the inputs never settled
        """
        for _ in range(max_reads):
            reading = self.read()
            if reading is not None:
                return reading
        logger.warning(f"Limit switches did not settle after {max_reads} reads")
        return None
