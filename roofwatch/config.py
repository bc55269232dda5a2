"""
ROOFWATCH Configuration

Typed configuration for the roof controller, loaded from YAML with
environment variable overrides.

Resolution order (later wins):
    1. Field defaults (see roofwatch.constants)
    2. YAML file (explicit path, or first existing of get_config_paths())
    3. Environment variables named ROOFWATCH_<SECTION>_<FIELD>,
       e.g. ROOFWATCH_ROOF_POLL_INTERVAL=0.5

Usage:
    from roofwatch.config import load_config

    config = load_config("/etc/roofwatch/config.yaml")
    print(config.roof.poll_interval)
"""

import os
from pathlib import Path
from typing import Any, Literal, Optional, get_origin

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from roofwatch import constants
from roofwatch.exceptions import ConfigurationError

ENV_PREFIX = "ROOFWATCH_"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class GpioConfig(BaseModel):
    """GPIO backend and pin assignments (BCM numbering)."""
    backend: Literal["mock", "rpigpio", "gpiozero"] = "mock"
    open_limit_pin: int = Field(default=constants.FULL_OPEN_PIN, ge=0, le=27)
    closed_limit_pin: int = Field(default=constants.FULL_CLOSED_PIN, ge=0, le=27)
    ac_pin: int = Field(default=constants.AC_PIN, ge=0, le=27)

    @model_validator(mode="after")
    def _pins_distinct(self) -> "GpioConfig":
        pins = [self.open_limit_pin, self.closed_limit_pin, self.ac_pin]
        if len(set(pins)) != len(pins):
            raise ValueError(f"GPIO pins must be distinct, got {pins}")
        return self


class RelayConfig(BaseModel):
    """Motor relay transport.

    Credentials are passed to the transport as-is; the controller never
    inspects them.
    """
    type: Literal["http", "simulator"] = "http"
    base_url: str = constants.RELAY_BASE_URL
    username: Optional[str] = None
    password: Optional[str] = None
    open_path: str = constants.RELAY_OPEN_PATH
    close_path: str = constants.RELAY_CLOSE_PATH
    stop_path: str = constants.RELAY_STOP_PATH
    timeout: float = Field(default=constants.RELAY_TIMEOUT_SEC, gt=0.0, le=60.0)

    @field_validator("base_url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Relay base_url must be http(s), got {value!r}")
        return value.rstrip("/")


class RoofConfig(BaseModel):
    """State machine and poll loop settings."""
    device_name: str = constants.DEFAULT_DEVICE_NAME
    poll_interval: float = Field(default=constants.POLL_INTERVAL_SEC, ge=0.05, le=60.0)
    command_timeout: float = Field(default=constants.COMMAND_TIMEOUT_SEC, gt=0.0, le=120.0)
    motion_timeout: Optional[float] = Field(default=constants.MOTION_TIMEOUT_SEC, gt=0.0)
    sensor_fault_warn_ticks: int = Field(default=constants.SENSOR_FAULT_WARN_TICKS, ge=1)
    park_data_file: str = constants.DEFAULT_PARK_DATA_FILE


class SimulatorConfig(BaseModel):
    """Simulated roof used with relay.type == 'simulator'."""
    travel_time: float = Field(default=constants.SIMULATOR_TRAVEL_TIME_SEC, gt=0.0)
    initial_position: Literal["closed", "open", "between"] = "closed"


class RoofwatchConfig(BaseModel):
    """Master configuration."""
    gpio: GpioConfig = Field(default_factory=GpioConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    roof: RoofConfig = Field(default_factory=RoofConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
    log_level: LogLevel = "INFO"
    log_file: Optional[str] = None
    log_format: Literal["text", "json"] = "text"
    # Per-service overrides, e.g. {"enclosure.roof": "DEBUG"}
    log_levels: dict[str, LogLevel] = Field(default_factory=dict)


def get_config_paths() -> list[Path]:
    """Candidate config files, in search order."""
    return [
        Path("./roofwatch.yaml"),
        Path.home() / ".roofwatch" / "config.yaml",
        Path("/etc/roofwatch/config.yaml"),
    ]


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", config_file=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Invalid YAML: top level must be a mapping", config_file=str(path)
        )
    return data


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Merge ROOFWATCH_<SECTION>_<FIELD> variables into raw config data."""
    sections = {
        name: field.annotation
        for name, field in RoofwatchConfig.model_fields.items()
        if get_origin(field.annotation) is None
        and isinstance(field.annotation, type)
        and issubclass(field.annotation, BaseModel)
    }

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()

        if name in RoofwatchConfig.model_fields and name not in sections:
            data[name] = value
            continue

        for section, model in sections.items():
            prefix = f"{section}_"
            if name.startswith(prefix) and name[len(prefix):] in model.model_fields:
                section_data = data.setdefault(section, {})
                if not isinstance(section_data, dict):
                    section_data = section_data.model_dump()
                    data[section] = section_data
                section_data[name[len(prefix):]] = value
                break

    return data


def load_config(path: Optional[str | Path] = None) -> RoofwatchConfig:
    """Load configuration.

    Args:
        path: Explicit config file. When None, the first existing file from
              get_config_paths() is used, falling back to defaults.

    Returns:
        Validated RoofwatchConfig

    Raises:
        ConfigurationError: File missing, YAML invalid, or validation failed
    """
    data: dict[str, Any] = {}
    source: Optional[Path] = None

    if path is not None:
        source = Path(path).expanduser()
        if not source.exists():
            raise ConfigurationError(
                f"Configuration file not found: {source}", config_file=str(source)
            )
    else:
        source = next((p for p in get_config_paths() if p.exists()), None)

    if source is not None:
        data = _read_yaml(source)

    data = _apply_env_overrides(data)

    try:
        return RoofwatchConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}",
            config_file=str(source) if source else None,
        ) from e
