"""
ROOFWATCH Application Entry Point

Handles command-line arguments, configuration loading and signal handling,
then runs one RoofController until shutdown.

Usage:
    roofwatch --config /path/to/config.yaml  # gpio.backend rpigpio or gpiozero
    roofwatch --log-level DEBUG --log-format json
    roofwatch --simulator               # Simulated roof, no hardware
    roofwatch --dry-run                 # Validate config without starting

Entry Points:
    - CLI: `roofwatch` command (via pyproject.toml)
    - Direct: `python -m roofwatch.main`
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from typing import TYPE_CHECKING

from roofwatch import __version__
from roofwatch.config import RoofwatchConfig, load_config
from roofwatch.exceptions import ConfigurationError, RoofwatchError
from roofwatch.logging_config import get_logger, set_service_level, setup_logging
from services.enclosure.roof_controller import RoofController

if TYPE_CHECKING:
    from types import FrameType

__all__ = ["main", "async_main", "create_parser"]

logger = get_logger(__name__)


# =============================================================================
# Argument Parser
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="roofwatch",
        description="ROOFWATCH Roll-Off Roof Controller",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file (default: auto-discover)",
    )
    parser.add_argument(
        "-l",
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (overrides config file)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="Path to log file (default: console only)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["text", "json"],
        default=None,
        help="Log line format (overrides config file)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and exit without touching hardware",
    )
    parser.add_argument(
        "--simulator",
        action="store_true",
        help="Use the mock GPIO backend and simulated relay",
    )

    return parser


# =============================================================================
# Signal Handlers
# =============================================================================


class GracefulShutdown:
    """Manages graceful shutdown on SIGINT/SIGTERM.

    The first signal stops the poll loop and persists the park state; a
    second signal exits immediately.
    """

    def __init__(self) -> None:
        self._shutdown_requested = False
        self._shutdown_event: asyncio.Event | None = None
        self._original_handlers: dict[int, signal.Handlers] = {}

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    def install_handlers(self) -> None:
        """Install signal handlers for graceful shutdown."""
        self._original_handlers[signal.SIGINT] = signal.signal(
            signal.SIGINT, self._handle_signal
        )
        self._original_handlers[signal.SIGTERM] = signal.signal(
            signal.SIGTERM, self._handle_signal
        )
        logger.debug("Signal handlers installed for graceful shutdown")

    def restore_handlers(self) -> None:
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        signal_name = signal.Signals(signum).name
        if self._shutdown_requested:
            logger.warning(f"Received {signal_name} again - forcing immediate exit")
            sys.exit(1)

        logger.info(f"Received {signal_name} - initiating graceful shutdown...")
        self._shutdown_requested = True
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    def get_shutdown_event(self) -> asyncio.Event:
        """Get or create the event set when shutdown is requested."""
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
        return self._shutdown_event


# =============================================================================
# Main Entry Points
# =============================================================================


def apply_simulator_mode(config: RoofwatchConfig) -> None:
    """Switch the configuration to simulated hardware."""
    config.gpio.backend = "mock"
    config.relay.type = "simulator"


async def async_main(config: RoofwatchConfig, shutdown: GracefulShutdown) -> int:
    """Run the roof controller until shutdown is requested.

    Returns:
        Exit code (0 for success)
    """
    shutdown_event = shutdown.get_shutdown_event()
    roof = RoofController(config)

    try:
        await roof.connect()
        logger.info("Roof controller running. Press Ctrl+C to stop.")
        await shutdown_event.wait()
        return 0
    finally:
        await roof.disconnect()


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(log_level=args.log_level or "INFO", log_file=args.log_file)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    # Command line wins over the config file
    setup_logging(
        log_level=args.log_level or config.log_level,
        log_file=args.log_file or config.log_file,
        json_format=(args.log_format or config.log_format) == "json",
    )
    for service, level in config.log_levels.items():
        set_service_level(service, level)

    if args.simulator:
        apply_simulator_mode(config)
        logger.info("Simulator mode enabled")

    logger.info(
        f"{config.roof.device_name}: relay={config.relay.type} "
        f"gpio={config.gpio.backend} poll={config.roof.poll_interval:.2f}s"
    )

    if args.dry_run:
        try:
            RoofController(config)
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            return 1
        logger.info("Dry run mode - configuration valid, exiting")
        return 0

    shutdown = GracefulShutdown()
    shutdown.install_handlers()
    try:
        return asyncio.run(async_main(config, shutdown))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except RoofwatchError as e:
        logger.error(f"ROOFWATCH error: {e}")
        return 1
    finally:
        shutdown.restore_handlers()
        logger.info("ROOFWATCH shutdown complete")


if __name__ == "__main__":
    sys.exit(main())
