"""
ROOFWATCH Shared Type Definitions

Enumerations and small value types shared by the sensor, actuator and state
machine modules. Directions and commands are closed enum types rather than
booleans or strings so every comparison is explicit.

Usage:
    from roofwatch.types import ParkState, MotionIntent, Direction
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeAlias, Union


# =============================================================================
# Sensor Types
# =============================================================================

class LimitSwitch(Enum):
    """Logical state of one normally-closed limit switch."""
    ENGAGED = "engaged"          # End of travel reached, power cut
    DISENGAGED = "disengaged"

    @classmethod
    def from_level(cls, level: int) -> "LimitSwitch":
        """Map a raw GPIO level to a switch state (LOW means engaged)."""
        return cls.DISENGAGED if level else cls.ENGAGED


# =============================================================================
# Roof State Types
# =============================================================================

class ParkState(Enum):
    """Derived roof position. Parked is fully closed, unparked fully open."""
    PARKED = "parked"
    UNPARKED = "unparked"
    UNKNOWN = "unknown"


class MotionIntent(Enum):
    """Last commanded direction, distinct from the sensed position."""
    IDLE = "idle"
    OPENING = "opening"
    CLOSING = "closing"


class Direction(Enum):
    """Roof travel direction (DOME_CW opens, DOME_CCW closes)."""
    OPEN = "open"
    CLOSE = "close"


class MotionCommand(Enum):
    """Start or stop a move."""
    START = "start"
    STOP = "stop"


class MotionAction(Enum):
    """Mutually exclusive commands understood by the motion relay."""
    STOP = "stop"
    DRIVE_OPEN = "drive_open"
    DRIVE_CLOSE = "drive_close"

    @classmethod
    def for_direction(cls, direction: Direction) -> "MotionAction":
        return cls.DRIVE_OPEN if direction is Direction.OPEN else cls.DRIVE_CLOSE


class ClimateState(Enum):
    """AC unit state."""
    ON = "on"
    OFF = "off"


class CommandStatus(Enum):
    """Result reported to the host for a roof command."""
    OK = "ok"            # Completed synchronously
    BUSY = "busy"        # Accepted, completion observed by polling
    ALERT = "alert"      # Rejected


# =============================================================================
# Command Outcome
# =============================================================================

@dataclass(frozen=True)
class CommandOutcome:
    """Result of issuing one actuator command.

    Attributes:
        accepted: True if the actuator confirmed the command
        reason: Why the command was rejected (None when accepted)
    """
    accepted: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "CommandOutcome":
        return cls(accepted=True)

    @classmethod
    def rejected(cls, reason: str) -> "CommandOutcome":
        return cls(accepted=False, reason=reason)

    def __bool__(self) -> bool:
        return self.accepted


# =============================================================================
# Callback Types
# =============================================================================

EventCallback: TypeAlias = Callable[[str, Any], Union[None, Awaitable[None]]]
