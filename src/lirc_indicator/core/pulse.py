"""
Pulse sequencing for the indicator output.
"""

import logging
import time
from typing import Callable

from lirc_indicator.hal.base_output import DigitalOutputController, PinLevel

logger = logging.getLogger(__name__)

DEFAULT_PULSE_DURATION = 0.1  # seconds


class PulseSequencer:
    """
    Drives one HIGH-hold-LOW pulse on an output pin.

    The call blocks for the whole hold. Errors from either level write
    propagate unchanged.
    """

    def __init__(
        self,
        duration: float = DEFAULT_PULSE_DURATION,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if duration < 0:
            raise ValueError(f"Pulse duration must not be negative, got {duration}")
        self._duration = duration
        self._sleep = sleep
        self._pulse_count = 0

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def pulse_count(self) -> int:
        """Number of completed pulses."""
        return self._pulse_count

    def pulse(self, controller: DigitalOutputController, pin: int) -> None:
        controller.set_level(pin, PinLevel.HIGH)
        self._sleep(self._duration)
        controller.set_level(pin, PinLevel.LOW)
        self._pulse_count += 1
        logger.debug(f"Pulsed pin {pin} for {self._duration:.3f}s")
