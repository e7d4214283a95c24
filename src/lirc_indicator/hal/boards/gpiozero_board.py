"""
gpiozero output controller.

Uses gpiozero's DigitalOutputDevice, so the indicator also runs on
kernels without the legacy sysfs GPIO interface (e.g. Raspberry Pi 5).
gpiozero claims the line when the device is created and frees it when
the device is closed; the direction is fixed to output at creation.
"""

import logging
from typing import Any, Dict, Optional

from lirc_indicator.core.errors import (
    ConfigurationError,
    OutputWriteError,
    ResourceUnavailableError,
)
from lirc_indicator.hal.base_output import DigitalOutputController, PinLevel

logger = logging.getLogger(__name__)


class GpioZeroOutputController(DigitalOutputController):
    """
    Output controller backed by gpiozero.

    Args:
        pin_factory: gpiozero pin factory to use; None means gpiozero's
            default (selected by GPIOZERO_PIN_FACTORY or autodetected)
    """

    def __init__(self, pin_factory: Optional[Any] = None):
        super().__init__()
        self._pin_factory = pin_factory
        self._devices: Dict[int, Any] = {}

    @property
    def name(self) -> str:
        return "gpiozero"

    def _export(self, pin: int) -> None:
        import gpiozero

        try:
            device = gpiozero.DigitalOutputDevice(
                pin, initial_value=False, pin_factory=self._pin_factory
            )
        except gpiozero.GPIOZeroError as e:
            raise ResourceUnavailableError(f"Unable to claim GPIO pin {pin}: {e}") from e
        except OSError as e:
            raise ResourceUnavailableError.from_os_error(
                f"Unable to claim GPIO pin {pin}", e
            ) from e
        self._devices[pin] = device

    def _set_direction_output(self, pin: int) -> None:
        # DigitalOutputDevice is created as an output
        if pin not in self._devices:
            raise ConfigurationError(f"No gpiozero device for pin {pin}")

    def _write_level(self, pin: int, level: PinLevel) -> None:
        import gpiozero

        device = self._devices[pin]
        try:
            if level == PinLevel.HIGH:
                device.on()
            else:
                device.off()
        except gpiozero.GPIOZeroError as e:
            raise OutputWriteError(f"Unable to set GPIO pin {pin}: {e}") from e
        except OSError as e:
            raise OutputWriteError.from_os_error(f"Unable to set GPIO pin {pin}", e) from e

    def _unexport(self, pin: int) -> None:
        import gpiozero

        device = self._devices.pop(pin)
        try:
            device.close()
        except gpiozero.GPIOZeroError as e:
            raise ResourceUnavailableError(f"Unable to release GPIO pin {pin}: {e}") from e
        except OSError as e:
            raise ResourceUnavailableError.from_os_error(
                f"Unable to release GPIO pin {pin}", e
            ) from e

    def device(self, pin: int) -> Optional[Any]:
        """The gpiozero device driving ``pin``, if acquired."""
        return self._devices.get(pin)
