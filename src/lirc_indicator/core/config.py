"""
Centralized Configuration for lirc-indicator.

This module provides a single source of truth for the defaults the
command line can override: which pin to pulse, where the LIRC socket
lives, and how long a pulse lasts.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from lirc_indicator.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class TimingConfig:
    """Timing-related configuration values."""

    # How long the output stays HIGH for one event (seconds)
    pulse_duration: float = 0.1


@dataclass
class HardwareConfig:
    """Hardware-related configuration values."""

    # BCM pin number pulsed when none is given on the command line
    default_pin: int = 4

    # Root of the kernel's GPIO sysfs interface
    gpio_root: Path = field(default_factory=lambda: Path("/sys/class/gpio"))

    # Output backend: "sysfs", "gpiozero" or "mock"
    backend: str = "sysfs"


@dataclass
class LircConfig:
    """Event source configuration values."""

    socket_path: str = "/var/run/lirc/lircd"

    # Maximum number of bytes taken from the socket per read
    read_buffer_size: int = 128

    # Substring lircd puts in button-release records
    release_marker: str = "_UP "


@dataclass
class PathConfig:
    """Path-related configuration values."""

    user_config_dir: Path = field(default_factory=lambda: Path.home() / ".lirc_indicator")


@dataclass
class IndicatorConfig:
    """Main configuration container for lirc-indicator."""

    timing: TimingConfig = field(default_factory=TimingConfig)
    hardware: HardwareConfig = field(default_factory=HardwareConfig)
    lirc: LircConfig = field(default_factory=LircConfig)
    paths: PathConfig = field(default_factory=PathConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "timing": {
                "pulse_duration": self.timing.pulse_duration,
            },
            "hardware": {
                "default_pin": self.hardware.default_pin,
                "gpio_root": str(self.hardware.gpio_root),
                "backend": self.hardware.backend,
            },
            "lirc": {
                "socket_path": self.lirc.socket_path,
                "read_buffer_size": self.lirc.read_buffer_size,
                "release_marker": self.lirc.release_marker,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IndicatorConfig":
        """Create configuration from dictionary."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration must be an object, got {data!r}")

        config = cls()
        _apply_section(config.timing, "timing", data.get("timing", {}))
        _apply_section(config.hardware, "hardware", data.get("hardware", {}))
        _apply_section(config.lirc, "lirc", data.get("lirc", {}))
        return config

    def save(self, path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = self.paths.user_config_dir / "config.json"

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "IndicatorConfig":
        """Load configuration from file, using defaults if not found."""
        config = cls()

        if path is None:
            path = config.paths.user_config_dir / "config.json"

        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                config = cls.from_dict(data)
                logger.info(f"Configuration loaded from {path}")
            except (OSError, ValueError, ConfigurationError) as e:
                logger.warning(f"Failed to load configuration from {path}: {e}")
                logger.info("Using default configuration")

        return config



def _apply_section(section: Any, name: str, values: Any) -> None:
    """
    Copy known keys from ``values`` onto a config section.

    Each value is converted to the type of the field's default, so
    ``"0.1"`` becomes 0.1 and ``"/tmp/gpio"`` becomes a Path.

    Raises:
        ConfigurationError: If a value cannot be converted
    """
    if not isinstance(values, dict):
        raise ConfigurationError(f"Section '{name}' must be an object, got {values!r}")

    for key, value in values.items():
        if not hasattr(section, key):
            continue
        kind = type(getattr(section, key))
        # bool is an int subclass but never a valid number here
        if isinstance(value, bool) or value is None:
            raise ConfigurationError(f"Invalid value for {name}.{key}: {value!r}")
        if kind is int and isinstance(value, float) and not value.is_integer():
            raise ConfigurationError(f"Invalid value for {name}.{key}: {value!r}")
        try:
            setattr(section, key, kind(value))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for {name}.{key}: {value!r}") from e


# Global configuration instance - lazy loaded
_config: Optional[IndicatorConfig] = None


def get_config() -> IndicatorConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = IndicatorConfig.load()
    return _config


def set_config(config: IndicatorConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
