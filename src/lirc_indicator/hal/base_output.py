"""
Abstract Base Class for digital output controllers.

A controller owns the lifecycle of output pins: acquisition, direction
configuration, level writes and release. Each step maps to a single
write on the underlying control surface, so backends only implement
four small hooks and the lifecycle bookkeeping lives here.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Any, Optional

from lirc_indicator.core.errors import (
    InvalidArgumentError,
    InvalidLevelError,
    InvalidPinError,
)
from lirc_indicator.hal.pin_manager import PinManager

logger = logging.getLogger(__name__)


class PinLevel(IntEnum):
    """Binary output levels."""

    LOW = 0
    HIGH = 1


class PinState(Enum):
    """Lifecycle of a pin as seen by its controller."""

    FREE = auto()
    ACQUIRED = auto()
    OUTPUT = auto()


@dataclass
class PinCapability:
    """Describes a pin exposed on the board header."""

    pin: int
    description: str = ""


@dataclass
class ControllerCapabilities:
    """Describes the pins a controller is allowed to touch."""

    name: str
    pins: dict[int, PinCapability] = field(default_factory=dict)


# Raspberry Pi GPIO pins usable as outputs (BCM numbering).
# Revision notes: R1 boards expose 0, 1 and 21; R2 boards expose 2, 3, 27
# and the P5 connector pins 28-31.
RPI_GPIO_PINS = {
    0: PinCapability(0, description="GPIO0 (R1 only)"),
    1: PinCapability(1, description="GPIO1 (R1 only)"),
    2: PinCapability(2, description="GPIO2 (R2 only)"),
    3: PinCapability(3, description="GPIO3 (R2 only)"),
    4: PinCapability(4, description="GPIO4"),
    7: PinCapability(7, description="GPIO7 (CE1)"),
    8: PinCapability(8, description="GPIO8 (CE0)"),
    9: PinCapability(9, description="GPIO9 (MISO)"),
    10: PinCapability(10, description="GPIO10 (MOSI)"),
    11: PinCapability(11, description="GPIO11 (SCLK)"),
    14: PinCapability(14, description="GPIO14 (TXD)"),
    15: PinCapability(15, description="GPIO15 (RXD)"),
    17: PinCapability(17, description="GPIO17"),
    18: PinCapability(18, description="GPIO18 (PWM0)"),
    21: PinCapability(21, description="GPIO21 (R1 only)"),
    22: PinCapability(22, description="GPIO22"),
    23: PinCapability(23, description="GPIO23"),
    24: PinCapability(24, description="GPIO24"),
    25: PinCapability(25, description="GPIO25"),
    27: PinCapability(27, description="GPIO27 (R2 only)"),
    28: PinCapability(28, description="GPIO28 (R2 only, P5)"),
    29: PinCapability(29, description="GPIO29 (R2 only, P5)"),
    30: PinCapability(30, description="GPIO30 (R2 only, P5)"),
    31: PinCapability(31, description="GPIO31 (R2 only, P5)"),
}


def validate_pin(pin: Any, pins: Optional[dict[int, PinCapability]] = None) -> int:
    """
    Check that ``pin`` is one of the header pins.

    Args:
        pin: Candidate pin identifier
        pins: Capability table to check against (Raspberry Pi by default)

    Returns:
        The pin, unchanged

    Raises:
        InvalidPinError: If the pin is not an integer in the table
    """
    if pins is None:
        pins = RPI_GPIO_PINS
    if isinstance(pin, bool) or not isinstance(pin, int) or pin not in pins:
        raise InvalidPinError(pin)
    return pin


class DigitalOutputController(ABC):
    """
    Abstract Base Class defining the contract for output pin drivers.

    Backends implement the ``_export``, ``_set_direction_output``,
    ``_write_level`` and ``_unexport`` hooks. The public methods validate
    arguments, keep the per-pin state and record claims in the
    controller's PinManager before any hook runs.
    """

    def __init__(self):
        self._pin_manager = PinManager()
        self._states: dict[int, PinState] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the backend."""
        ...

    @property
    def capabilities(self) -> ControllerCapabilities:
        """Pins this controller accepts."""
        return ControllerCapabilities(name=self.name, pins=RPI_GPIO_PINS)

    @property
    def pin_manager(self) -> PinManager:
        """Registry of pins currently claimed through this controller."""
        return self._pin_manager

    def state(self, pin: int) -> PinState:
        """Current lifecycle state of ``pin``."""
        return self._states.get(pin, PinState.FREE)

    def is_acquired(self, pin: int) -> bool:
        return self.state(pin) != PinState.FREE

    def acquire(self, pin: int) -> None:
        """
        Claim exclusive use of a pin.

        Raises:
            InvalidPinError: If the pin is not on the header
            PinConflictError: If the pin is already claimed
            ResourceUnavailableError: If the control surface refuses
        """
        validate_pin(pin, self.capabilities.pins)
        self._pin_manager.allocate_pin(pin, owner=self.name)
        try:
            self._export(pin)
        except Exception:
            self._pin_manager.release_pin(pin)
            raise
        self._states[pin] = PinState.ACQUIRED
        logger.debug(f"{self.name}: acquired pin {pin}")

    def configure_as_output(self, pin: int) -> None:
        """
        Set the pin's direction to output.

        Raises:
            ConfigurationError: If the direction write fails
        """
        self._require_acquired(pin)
        self._set_direction_output(pin)
        self._states[pin] = PinState.OUTPUT
        logger.debug(f"{self.name}: pin {pin} configured as output")

    def set_level(self, pin: int, level: Any) -> None:
        """
        Drive the pin LOW (0) or HIGH (1).

        Raises:
            InvalidLevelError: For anything other than 0 or 1
            OutputWriteError: If the write fails
        """
        if isinstance(level, bool):
            level = int(level)
        if not isinstance(level, int) or level not in (PinLevel.LOW, PinLevel.HIGH):
            raise InvalidLevelError(pin, level)
        self._require_acquired(pin)
        self._write_level(pin, PinLevel(level))

    def release(self, pin: int) -> None:
        """
        Give the pin back to the system.

        The pin is marked free even when the control surface write fails,
        so a failed release is never retried.

        Raises:
            InvalidArgumentError: If the pin was never acquired
            ResourceUnavailableError: If the control surface refuses
        """
        self._require_acquired(pin)
        try:
            self._unexport(pin)
        finally:
            self._states.pop(pin, None)
            self._pin_manager.release_pin(pin)
        logger.debug(f"{self.name}: released pin {pin}")

    def _require_acquired(self, pin: int) -> None:
        if not self.is_acquired(pin):
            raise InvalidArgumentError(f"Pin {pin} has not been acquired")

    @abstractmethod
    def _export(self, pin: int) -> None:
        ...

    @abstractmethod
    def _set_direction_output(self, pin: int) -> None:
        ...

    @abstractmethod
    def _write_level(self, pin: int, level: PinLevel) -> None:
        ...

    @abstractmethod
    def _unexport(self, pin: int) -> None:
        ...
