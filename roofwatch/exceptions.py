"""
ROOFWATCH Custom Exceptions

Provides the domain-specific exception hierarchy for the ROOFWATCH roll-off
roof controller. Most runtime failures are reported to callers as
CommandStatus.ALERT; these exceptions mark the seams where a failure is
detected and give log lines consistent context.

Exception Hierarchy:
    RoofwatchError (base)
    ├── ConfigurationError
    ├── DeviceConnectionError
    ├── RelayTransportError
    ├── CommandTimeoutError
    └── SafetyError
        └── PreconditionError
"""

from typing import Any, Optional


class RoofwatchError(Exception):
    """Base exception for all ROOFWATCH errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional error context
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(RoofwatchError):
    """Error in configuration file or settings.

    Raised when configuration validation fails, the requested file is
    missing, or YAML cannot be parsed.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_file: Optional[str] = None,
    ) -> None:
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_file:
            details["config_file"] = config_file
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


# =============================================================================
# Device / Transport Errors
# =============================================================================

class DeviceConnectionError(RoofwatchError):
    """Failed to bring up a hardware backend (GPIO library missing or failing)."""

    def __init__(
        self,
        message: str,
        device_type: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> None:
        details = {}
        if device_type:
            details["device_type"] = device_type
        if backend:
            details["backend"] = backend
        super().__init__(message, details)
        self.device_type = device_type
        self.backend = backend


class RelayTransportError(RoofwatchError):
    """The web relay did not accept a motor command."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        details: dict[str, Any] = {}
        if url:
            details["url"] = url
        if status is not None:
            details["status"] = status
        super().__init__(message, details)
        self.url = url
        self.status = status


class CommandTimeoutError(RoofwatchError):
    """Actuator command did not complete within its time bound."""

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        details: dict[str, Any] = {}
        if command:
            details["command"] = command
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, details)
        self.command = command
        self.timeout_seconds = timeout_seconds


# =============================================================================
# Safety Errors
# =============================================================================

class SafetyError(RoofwatchError):
    """Base class for safety-related refusals."""
    pass


class PreconditionError(SafetyError):
    """A move request was refused before any command was sent.

    Raised when the roof is asked to travel into a limit that is already
    engaged, or to open while the weather interlock reports danger.
    """

    def __init__(
        self,
        message: str,
        direction: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        details: dict[str, Any] = {}
        if direction:
            details["direction"] = direction
        if reason:
            details["reason"] = reason
        super().__init__(message, details)
        self.direction = direction
        self.reason = reason
