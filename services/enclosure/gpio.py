"""
ROOFWATCH GPIO Abstraction

Raw digital I/O for the roof: two limit switch inputs and the AC solid state
relay output.

The limit switches are NC contacts wired into the motor mains. A phone
charger behind each switch feeds a voltage divider into a GPIO input, so the
pin reads HIGH while the switch is NOT actuated and LOW once the switch cuts
power at the end of travel. This module returns the raw levels; mapping to
ENGAGED/DISENGAGED happens in the sensor reader.
"""

import logging
from enum import Enum
from typing import Optional

from roofwatch import constants
from roofwatch.exceptions import DeviceConnectionError

logger = logging.getLogger("roofwatch.enclosure.gpio")

HIGH = 1
LOW = 0


class GPIOBackend(Enum):
    """Available GPIO backends."""
    MOCK = "mock"
    RPIGPIO = "rpigpio"
    GPIOZERO = "gpiozero"


class GPIOInterface:
    """
    GPIO interface for the roof limit switches and AC relay.

    Backends:
    - Mock (in-memory levels, for tests and the simulator)
    - RPi.GPIO (traditional Raspberry Pi)
    - gpiozero
    """

    def __init__(self,
                 backend: GPIOBackend = GPIOBackend.MOCK,
                 open_limit_pin: int = constants.FULL_OPEN_PIN,
                 closed_limit_pin: int = constants.FULL_CLOSED_PIN,
                 ac_pin: int = constants.AC_PIN):
        """
        Initialize GPIO interface.

        Args:
            backend: GPIO backend to use
            open_limit_pin: Input fed by the fully-open limit switch
            closed_limit_pin: Input fed by the fully-closed limit switch
            ac_pin: Output driving the AC solid state relay
        """
        self.backend = backend
        self.pin_open_limit = open_limit_pin
        self.pin_closed_limit = closed_limit_pin
        self.pin_ac = ac_pin

        self._gpio = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Initialize GPIO backend.

        Raises:
            DeviceConnectionError: Backend library missing or setup failed
        """
        if self._initialized:
            return

        if self.backend == GPIOBackend.GPIOZERO:
            self._init_gpiozero()
        elif self.backend == GPIOBackend.RPIGPIO:
            self._init_rpigpio()
        else:
            self._init_mock()

        self._initialized = True
        logger.info(f"GPIO initialized with {self.backend.value} backend")

    def _init_gpiozero(self) -> None:
        try:
            from gpiozero import DigitalInputDevice, DigitalOutputDevice
        except ImportError as e:
            raise DeviceConnectionError(
                "gpiozero is not installed", device_type="gpio", backend="gpiozero"
            ) from e

        try:
            # Inputs are driven by the charger voltage dividers, no pull resistor
            self._gpio = {
                "open_limit": DigitalInputDevice(
                    self.pin_open_limit, pull_up=None, active_state=True
                ),
                "closed_limit": DigitalInputDevice(
                    self.pin_closed_limit, pull_up=None, active_state=True
                ),
                # initial_value=None leaves the AC as it was before startup
                "ac": DigitalOutputDevice(
                    self.pin_ac, active_high=True, initial_value=None
                ),
            }
        except Exception as e:
            raise DeviceConnectionError(
                f"gpiozero initialization failed: {e}",
                device_type="gpio", backend="gpiozero",
            ) from e

    def _init_rpigpio(self) -> None:
        try:
            import RPi.GPIO as GPIO
        except ImportError as e:
            raise DeviceConnectionError(
                "RPi.GPIO is not installed", device_type="gpio", backend="rpigpio"
            ) from e

        try:
            GPIO.setmode(GPIO.BCM)
            GPIO.setwarnings(False)
            GPIO.setup(self.pin_open_limit, GPIO.IN, pull_up_down=GPIO.PUD_OFF)
            GPIO.setup(self.pin_closed_limit, GPIO.IN, pull_up_down=GPIO.PUD_OFF)
            GPIO.setup(self.pin_ac, GPIO.OUT)
        except Exception as e:
            raise DeviceConnectionError(
                f"RPi.GPIO initialization failed: {e}",
                device_type="gpio", backend="rpigpio",
            ) from e
        self._gpio = GPIO

    def _init_mock(self) -> None:
        # Roof starts fully closed: closed limit actuated (LOW), open released
        self._gpio = {
            "open_limit": HIGH,
            "closed_limit": LOW,
            "ac": LOW,
        }

    def cleanup(self) -> None:
        """Release GPIO resources."""
        if not self._initialized:
            return

        if self.backend == GPIOBackend.RPIGPIO:
            self._gpio.cleanup([self.pin_open_limit, self.pin_closed_limit])
        elif self.backend == GPIOBackend.GPIOZERO:
            # Leave the AC output alone so the unit keeps its state
            self._gpio["open_limit"].close()
            self._gpio["closed_limit"].close()

        self._initialized = False
        logger.info("GPIO cleanup complete")

    def _require(self) -> None:
        if not self._initialized:
            raise DeviceConnectionError("GPIO not initialized", device_type="gpio",
                                        backend=self.backend.value)

    # =========================================================================
    # LIMIT SWITCH INPUTS
    # =========================================================================

    def _read_input(self, key: str, pin: int) -> int:
        self._require()
        if self.backend == GPIOBackend.GPIOZERO:
            return int(self._gpio[key].value)
        elif self.backend == GPIOBackend.RPIGPIO:
            return int(self._gpio.input(pin))
        return int(self._gpio[key])

    def read_open_level(self) -> int:
        """Raw level of the fully-open limit input (LOW = switch actuated)."""
        return self._read_input("open_limit", self.pin_open_limit)

    def read_closed_level(self) -> int:
        """Raw level of the fully-closed limit input (LOW = switch actuated)."""
        return self._read_input("closed_limit", self.pin_closed_limit)

    # =========================================================================
    # AC RELAY OUTPUT
    # =========================================================================

    def write_ac(self, enable: bool) -> None:
        """Drive the AC relay output."""
        self._require()
        if self.backend == GPIOBackend.GPIOZERO:
            if enable:
                self._gpio["ac"].on()
            else:
                self._gpio["ac"].off()
        elif self.backend == GPIOBackend.RPIGPIO:
            self._gpio.output(self.pin_ac, HIGH if enable else LOW)
        else:
            self._gpio["ac"] = HIGH if enable else LOW

        logger.debug(f"AC relay: {'ON' if enable else 'OFF'}")

    def read_ac(self) -> bool:
        """Read back the AC output level."""
        self._require()
        if self.backend == GPIOBackend.GPIOZERO:
            return bool(self._gpio["ac"].value)
        elif self.backend == GPIOBackend.RPIGPIO:
            return bool(self._gpio.input(self.pin_ac))
        return bool(self._gpio["ac"])

    # =========================================================================
    # MOCK CONTROL (tests and simulator)
    # =========================================================================

    def mock_set_levels(self,
                        open_level: Optional[int] = None,
                        closed_level: Optional[int] = None) -> None:
        """Set mock limit input levels."""
        if self.backend != GPIOBackend.MOCK:
            raise RuntimeError("mock_set_levels requires the mock backend")
        self._require()
        if open_level is not None:
            self._gpio["open_limit"] = open_level
        if closed_level is not None:
            self._gpio["closed_limit"] = closed_level
