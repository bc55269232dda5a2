"""
ROOFWATCH Shared Constants

Centralizes default values used across the roof controller: pin
assignments, relay outlet paths and timing. Config defaults refer back here
so there is a single source of truth.
"""

from typing import Final

# =============================================================================
# Version and Identity
# =============================================================================

ROOFWATCH_VERSION: Final[str] = "0.1.0"
ROOFWATCH_NAME: Final[str] = "ROOFWATCH"
DEFAULT_DEVICE_NAME: Final[str] = "Roll-Off Roof"

# =============================================================================
# GPIO Pins (BCM numbering)
# =============================================================================

FULL_OPEN_PIN: Final[int] = 19
FULL_CLOSED_PIN: Final[int] = 12
AC_PIN: Final[int] = 16

# =============================================================================
# Web Relay
# =============================================================================

RELAY_BASE_URL: Final[str] = "http://dinrelay"
RELAY_OPEN_PATH: Final[str] = "outlet?1=ON"
RELAY_CLOSE_PATH: Final[str] = "outlet?2=ON&3=ON"
RELAY_STOP_PATH: Final[str] = "outlet?a=OFF"
RELAY_TIMEOUT_SEC: Final[float] = 5.0

# =============================================================================
# Timing
# =============================================================================

POLL_INTERVAL_SEC: Final[float] = 1.0
COMMAND_TIMEOUT_SEC: Final[float] = 10.0
MOTION_TIMEOUT_SEC: Final[float] = 120.0
SENSOR_FAULT_WARN_TICKS: Final[int] = 10
SETUP_PRIME_READS: Final[int] = 3

# Simulator roof travel time end to end
SIMULATOR_TRAVEL_TIME_SEC: Final[float] = 5.0

# =============================================================================
# Files
# =============================================================================

DEFAULT_PARK_DATA_FILE: Final[str] = "~/.roofwatch/park_data.json"
