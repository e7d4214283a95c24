"""
lirc-indicator Hardware Abstraction Layer (HAL)

Puts every output backend behind one DigitalOutputController interface,
so the run loop never knows whether it is writing sysfs nodes, driving
gpiozero or filling a mock journal.
"""

from lirc_indicator.hal.base_output import (
    DigitalOutputController,
    PinLevel,
    PinState,
    RPI_GPIO_PINS,
    validate_pin,
)
from lirc_indicator.hal.mock_board import MockOutputController
from lirc_indicator.hal.pin_manager import PinConflictError, PinManager

__all__ = [
    "DigitalOutputController",
    "MockOutputController",
    "PinConflictError",
    "PinLevel",
    "PinManager",
    "PinState",
    "RPI_GPIO_PINS",
    "validate_pin",
]
