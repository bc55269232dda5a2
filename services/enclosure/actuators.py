"""
ROOFWATCH Actuators

Motion: the roof motor is switched by a web-enabled DIN relay. Each
MotionAction maps to one outlet URL; an HTTP 2xx response means the relay
accepted the command.

Climate: the AC unit sits behind a solid state relay on a GPIO output.

Both actuators report a CommandOutcome instead of raising, so the state
machine can decide whether its state may change.
"""

import asyncio
import logging
from typing import Optional, Protocol

import aiohttp

from roofwatch.config import RelayConfig
from roofwatch.exceptions import RelayTransportError
from roofwatch.logging_config import log_timing
from roofwatch.types import ClimateState, CommandOutcome, MotionAction

logger = logging.getLogger("roofwatch.enclosure.actuators")


class MotionActuator(Protocol):
    """Issues exactly one of STOP / DRIVE_OPEN / DRIVE_CLOSE to the motor."""

    async def command(self, action: MotionAction) -> CommandOutcome: ...


class ClimateActuator(Protocol):
    """Switches the AC unit."""

    @property
    def state(self) -> ClimateState: ...

    async def command(self, state: ClimateState) -> CommandOutcome: ...


# =============================================================================
# HTTP RELAY
# =============================================================================

class HttpRelayMotionActuator:
    """
    Motor relay driven over HTTP.

    STOP switches every outlet off and is sent every time it is requested;
    the relay treats it as a no-op when the motor is already stopped.

    Usage:
        relay = HttpRelayMotionActuator(config.relay)
        outcome = await relay.command(MotionAction.DRIVE_OPEN)
        await relay.close()
    """

    def __init__(self, config: RelayConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None
        self._paths = {
            MotionAction.STOP: config.stop_path,
            MotionAction.DRIVE_OPEN: config.open_path,
            MotionAction.DRIVE_CLOSE: config.close_path,
        }

    def url_for(self, action: MotionAction) -> str:
        """Relay URL for an action."""
        return f"{self.config.base_url}/{self._paths[action].lstrip('/')}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            auth = None
            if self.config.username is not None:
                auth = aiohttp.BasicAuth(self.config.username, self.config.password or "")
            self._session = aiohttp.ClientSession(
                auth=auth,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
        return self._session

    async def _send(self, url: str) -> None:
        session = self._get_session()
        try:
            async with session.get(url) as response:
                await response.read()
                if response.status >= 300:
                    raise RelayTransportError(
                        f"Relay answered HTTP {response.status}",
                        url=url, status=response.status,
                    )
        except aiohttp.ClientError as e:
            raise RelayTransportError(f"sendRelay error: {e}", url=url) from e
        except asyncio.TimeoutError as e:
            raise RelayTransportError(
                f"Relay did not answer within {self.config.timeout:.1f}s", url=url
            ) from e

    async def command(self, action: MotionAction) -> CommandOutcome:
        """Send one motion command to the relay."""
        url = self.url_for(action)
        try:
            with log_timing(logger, f"relay {action.value}",
                            warn_threshold_sec=self.config.timeout / 2):
                await self._send(url)
        except RelayTransportError as e:
            logger.error(str(e))
            return CommandOutcome.rejected(e.message)

        logger.debug(f"Relay accepted {action.value}")
        return CommandOutcome.ok()

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


# =============================================================================
# AC RELAY
# =============================================================================

class ACOutput(Protocol):
    """GPIO output for the AC relay (satisfied by GPIOInterface)."""

    def write_ac(self, enable: bool) -> None: ...

    def read_ac(self) -> bool: ...


class GpioClimateActuator:
    """AC unit behind a GPIO-driven solid state relay."""

    def __init__(self, output: ACOutput, initial: ClimateState = ClimateState.OFF):
        self._output = output
        self._state = initial

    @property
    def state(self) -> ClimateState:
        """Last commanded AC state."""
        return self._state

    def sync_from_output(self) -> ClimateState:
        """Adopt the current output level as the AC state (startup)."""
        self._state = ClimateState.ON if self._output.read_ac() else ClimateState.OFF
        return self._state

    async def command(self, state: ClimateState) -> CommandOutcome:
        try:
            self._output.write_ac(state is ClimateState.ON)
        except Exception as e:
            logger.error(f"AC relay write failed: {e}")
            return CommandOutcome.rejected(str(e))

        self._state = state
        logger.info(f"AC turned {state.value}.")
        return CommandOutcome.ok()
