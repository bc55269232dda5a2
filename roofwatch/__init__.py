"""
ROOFWATCH - Roll-Off Roof Controller

Safety-first controller for a motorized roll-off observatory roof.

Architecture:
    - Sensor-first: limit switches are authoritative over remembered state
    - Explicit UNKNOWN: no park state is claimed the switches do not support
    - Single evaluator: poll ticks and commands run one at a time on asyncio
    - Dependent AC unit: off before opening, on after closing
"""

__version__ = "0.1.0"
__author__ = "ROOFWATCH contributors"

# Version tuple for programmatic comparison
VERSION_INFO = (0, 1, 0)

from roofwatch.exceptions import RoofwatchError

from roofwatch.constants import (
    ROOFWATCH_VERSION,
    ROOFWATCH_NAME,
)

from roofwatch.types import (
    ClimateState,
    CommandOutcome,
    CommandStatus,
    Direction,
    LimitSwitch,
    MotionCommand,
    MotionIntent,
    ParkState,
)
