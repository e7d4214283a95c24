"""
Output controller implementations and the backend registry.
"""

from typing import Any, Dict, Optional, Type

from lirc_indicator.core.errors import ConfigurationError
from lirc_indicator.hal.base_output import DigitalOutputController
from lirc_indicator.hal.boards.gpiozero_board import GpioZeroOutputController
from lirc_indicator.hal.boards.sysfs_board import SysfsOutputController
from lirc_indicator.hal.mock_board import MockOutputController

CONTROLLER_REGISTRY: Dict[str, Type[DigitalOutputController]] = {
    "sysfs": SysfsOutputController,
    "gpiozero": GpioZeroOutputController,
    "mock": MockOutputController,
}


def create_controller(backend: str, config: Optional[Any] = None) -> DigitalOutputController:
    """
    Create an output controller by backend name.

    Args:
        backend: One of the CONTROLLER_REGISTRY keys
        config: IndicatorConfig supplying backend settings (sysfs root)

    Raises:
        ConfigurationError: If the backend is unknown
    """
    driver_class = CONTROLLER_REGISTRY.get(backend)
    if driver_class is None:
        raise ConfigurationError(f"Unknown output backend: {backend}")

    if driver_class is SysfsOutputController and config is not None:
        return SysfsOutputController(root=config.hardware.gpio_root)
    return driver_class()


__all__ = [
    "CONTROLLER_REGISTRY",
    "GpioZeroOutputController",
    "MockOutputController",
    "SysfsOutputController",
    "create_controller",
]
