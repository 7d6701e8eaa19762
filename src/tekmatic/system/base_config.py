"""Base configuration class for tekmatic controllers."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum

from tekmatic.util.defaults import (
    DEFAULT_BAUDRATE,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
)


class ConfigVersion(str, Enum):
    """Configuration version enumeration.

    Versions:
    - CURRENT: Initial INI format (v1)
    """

    CURRENT = "v1"


@dataclass
class ControllerConfig:
    """Controller configuration loaded from INI files.

    Attributes
    ----------
    name : str
        Name of the controller configuration (INI section)
    port : str
        Serial port of the controller. Empty means auto-detect.
    baudrate : int
        Serial baud rate
    read_timeout : float
        Seconds to wait for each response line
    write_timeout : float
        Seconds to wait for each request to be written
    poll_interval : float
        Seconds between status poll ticks
    mock : bool
        Use the simulated controller instead of a serial port
    """

    name: str = "default"
    port: str = ""
    baudrate: int = DEFAULT_BAUDRATE
    read_timeout: float = DEFAULT_READ_TIMEOUT
    write_timeout: float = DEFAULT_WRITE_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    mock: bool = False

    def __post_init__(self):
        if self.baudrate <= 0:
            raise ValueError(f"baudrate must be positive, got {self.baudrate}")
        for key in ("read_timeout", "write_timeout", "poll_interval"):
            if getattr(self, key) <= 0:
                raise ValueError(f"{key} must be positive, got {getattr(self, key)}")

    def to_section(self) -> dict[str, str]:
        """INI section content (all values as strings, name excluded)."""
        section = {}
        for f in fields(self):
            if f.name == "name":
                continue
            value = getattr(self, f.name)
            section[f.name] = str(value).lower() if isinstance(value, bool) else str(value)
        return section
