"""
Linux sysfs GPIO controller.

Drives pins through /sys/class/gpio: one decimal write to ``export`` to
claim a pin, ``out`` to ``gpioN/direction``, ``0``/``1`` to
``gpioN/value`` and the pin number to ``unexport`` to give it back.
Every operation opens the node, writes once and closes it again, so
each level change reaches the pin before the call returns.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Type, Union

from lirc_indicator.core.errors import (
    ConfigurationError,
    IndicatorError,
    OutputWriteError,
    ResourceUnavailableError,
)
from lirc_indicator.hal.base_output import DigitalOutputController, PinLevel

logger = logging.getLogger(__name__)

DEFAULT_GPIO_ROOT = Path("/sys/class/gpio")


class SysfsOutputController(DigitalOutputController):
    """
    Output controller backed by the kernel's sysfs GPIO interface.

    Args:
        root: Directory holding ``export``, ``unexport`` and ``gpioN/``
        export_settle_timeout: Seconds to wait for ``gpioN/`` to appear
            after an export (udev may create it asynchronously)
    """

    def __init__(
        self,
        root: Union[str, Path, None] = None,
        export_settle_timeout: float = 1.0,
    ):
        super().__init__()
        self._root = Path(root) if root is not None else DEFAULT_GPIO_ROOT
        self._export_settle_timeout = export_settle_timeout

    @property
    def name(self) -> str:
        return "sysfs GPIO"

    @property
    def root(self) -> Path:
        return self._root

    def pin_path(self, pin: int) -> Path:
        """Directory sysfs creates for an exported pin."""
        return self._root / f"gpio{pin}"

    def _write(
        self,
        path: Path,
        value: str,
        interface: str,
        error_cls: Type[IndicatorError],
    ) -> None:
        try:
            handle = open(path, "w")
        except OSError as e:
            raise error_cls.from_os_error(f"Unable to open {interface}", e) from e

        try:
            with handle:
                handle.write(value)
        except OSError as e:
            raise error_cls.from_os_error(f"Unable to write to {interface}", e) from e

    def _wait_for_pin_dir(self, pin: int) -> None:
        deadline = time.monotonic() + self._export_settle_timeout
        while not self.pin_path(pin).exists():
            if time.monotonic() > deadline:
                logger.warning(f"{self.pin_path(pin)} did not appear after export")
                return
            time.sleep(0.01)

    def _export(self, pin: int) -> None:
        self._write(
            self._root / "export",
            f"{pin}\n",
            "GPIO export interface",
            ResourceUnavailableError,
        )
        self._wait_for_pin_dir(pin)

    def _set_direction_output(self, pin: int) -> None:
        self._write(
            self.pin_path(pin) / "direction",
            "out\n",
            f"GPIO direction interface for pin {pin}",
            ConfigurationError,
        )

    def _write_level(self, pin: int, level: PinLevel) -> None:
        self._write(
            self.pin_path(pin) / "value",
            f"{int(level)}\n",
            f"GPIO value interface for pin {pin}",
            OutputWriteError,
        )

    def _unexport(self, pin: int) -> None:
        self._write(
            self._root / "unexport",
            f"{pin}\n",
            "GPIO unexport interface",
            ResourceUnavailableError,
        )

    def read_level(self, pin: int) -> Optional[PinLevel]:
        """Read back the value node, or None if the pin is not exported."""
        try:
            return PinLevel(int((self.pin_path(pin) / "value").read_text().strip()))
        except (OSError, ValueError):
            return None
