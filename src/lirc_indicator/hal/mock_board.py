"""
Mock Output Controller - Simulated output pins for testing without hardware.

Logs every operation and keeps an ordered journal of them, so tests can
check exactly which writes happened and in what order.
"""

import logging
from typing import Optional

from lirc_indicator.core.errors import (
    ConfigurationError,
    IndicatorError,
    OutputWriteError,
    ResourceUnavailableError,
)
from lirc_indicator.hal.base_output import DigitalOutputController, PinLevel

logger = logging.getLogger(__name__)

_FAILURES: dict[str, type] = {
    "export": ResourceUnavailableError,
    "direction": ConfigurationError,
    "value": OutputWriteError,
    "unexport": ResourceUnavailableError,
}


class MockOutputController(DigitalOutputController):
    """
    Mock output controller.

    ``operations`` holds ``(operation, pin, value)`` tuples in the order
    they reached the simulated control surface. ``fail_on(operation)``
    makes the next matching operation raise the error a real backend
    would.
    """

    def __init__(self):
        super().__init__()
        self.operations: list[tuple[str, int, Optional[int]]] = []
        self._levels: dict[int, PinLevel] = {}
        self._exported: set[int] = set()
        self._failures: dict[str, IndicatorError] = {}

    @property
    def name(self) -> str:
        return "Mock GPIO"

    @property
    def exported_pins(self) -> set[int]:
        """Pins currently exported on the simulated surface."""
        return set(self._exported)

    def fail_on(self, operation: str, errno: int = 5, message: Optional[str] = None) -> None:
        """Make the next ``operation`` (export/direction/value/unexport) fail."""
        error_cls = _FAILURES[operation]
        text = message or f"Simulated {operation} failure"
        self._failures[operation] = error_cls(text, errno=errno)

    def _check_failure(self, operation: str) -> None:
        error = self._failures.pop(operation, None)
        if error is not None:
            logger.info(f"MockOutputController: {operation} failing ({error})")
            raise error

    def _export(self, pin: int) -> None:
        self._check_failure("export")
        logger.info(f"MockOutputController: Export pin {pin}")
        self.operations.append(("export", pin, None))
        self._exported.add(pin)

    def _set_direction_output(self, pin: int) -> None:
        self._check_failure("direction")
        logger.info(f"MockOutputController: Set pin {pin} direction to out")
        self.operations.append(("direction", pin, None))

    def _write_level(self, pin: int, level: PinLevel) -> None:
        self._check_failure("value")
        logger.info(f"MockOutputController: Write pin {pin} = {level.name}")
        self.operations.append(("value", pin, int(level)))
        self._levels[pin] = level

    def _unexport(self, pin: int) -> None:
        self._check_failure("unexport")
        logger.info(f"MockOutputController: Unexport pin {pin}")
        self.operations.append(("unexport", pin, None))
        self._exported.discard(pin)
        self._levels.pop(pin, None)

    def get_level(self, pin: int) -> Optional[PinLevel]:
        """Get the last level written to a pin."""
        return self._levels.get(pin)

    def level_writes(self, pin: Optional[int] = None) -> list[int]:
        """Levels written so far, optionally for one pin only."""
        return [
            value
            for op, op_pin, value in self.operations
            if op == "value" and (pin is None or op_pin == pin)
        ]
