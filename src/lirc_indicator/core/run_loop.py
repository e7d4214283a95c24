"""
Run loop and shutdown coordination.

The runner connects to lircd, claims the output pin and then reads
records forever, pulsing the pin for every press or repeat. Whatever
ends the run (end-of-stream, an I/O error or a termination signal) the
pin is released exactly once, and only if it was claimed.
"""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence

from lirc_indicator.core.errors import (
    EventReadError,
    EventSourceConnectionError,
    IndicatorError,
    Interrupted,
    ResourceUnavailableError,
)
from lirc_indicator.core.pulse import PulseSequencer
from lirc_indicator.core.types import ExitCode, RunState, ShutdownReason
from lirc_indicator.hal.base_output import DigitalOutputController
from lirc_indicator.lirc.connection import LircConnection
from lirc_indicator.lirc.event_filter import EventFilter

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownCoordinator:
    """
    Owns the pin claim and the cancellation flag for one run.

    The signal handler only records the request. It raises Interrupted
    itself only while the main flow is parked in the blocking read
    (inside ``interruptible()``); anywhere else the request is picked up
    at the next ``checkpoint()``, so a pulse in progress always ends LOW.
    """

    def __init__(self, controller: DigitalOutputController, pin: int):
        self._controller = controller
        self._pin = pin
        self._lock = threading.Lock()
        self._acquired = False
        self._released = False
        self._cancel = threading.Event()
        self._signum: Optional[int] = None
        self._interruptible = False

    @property
    def pin(self) -> int:
        return self._pin

    @property
    def is_acquired(self) -> bool:
        return self._acquired and not self._released

    @property
    def is_released(self) -> bool:
        return self._released

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def acquire(self) -> None:
        """
        Claim the pin. Allowed once per coordinator.

        Raises:
            ResourceUnavailableError: If already claimed or the claim fails
        """
        with self._lock:
            if self._acquired:
                raise ResourceUnavailableError(f"Pin {self._pin} was already acquired")
            self._controller.acquire(self._pin)
            self._acquired = True
        logger.info(f"Acquired GPIO pin {self._pin} ({self._controller.name})")

    def release(self) -> bool:
        """
        Release the pin if it was claimed and not yet released.

        Failures are logged, never raised.

        Returns:
            True if this call performed the release
        """
        with self._lock:
            if not self._acquired or self._released:
                return False
            self._released = True

        try:
            self._controller.release(self._pin)
            logger.info(f"Released GPIO pin {self._pin}")
        except IndicatorError as e:
            logger.error(f"{e}")
        return True

    def request_shutdown(self, signum: Optional[int] = None) -> None:
        """Ask the run loop to stop at its next checkpoint."""
        if self._signum is None:
            self._signum = signum
        self._cancel.set()

    def checkpoint(self) -> None:
        """Raise Interrupted if shutdown has been requested."""
        if self._cancel.is_set():
            raise Interrupted(self._signum)

    @contextmanager
    def interruptible(self) -> Iterator[None]:
        """Mark a blocking section a signal may unwind directly."""
        self._interruptible = True
        try:
            self.checkpoint()
            yield
        finally:
            self._interruptible = False

    def handle_signal(self, signum: int, frame) -> None:
        self.request_shutdown(signum)
        if self._interruptible:
            self._interruptible = False
            raise Interrupted(signum)

    def install_signal_handlers(
        self, signals: Sequence[int] = DEFAULT_SIGNALS
    ) -> Callable[[], None]:
        """
        Route ``signals`` to ``handle_signal``.

        Returns:
            A callable restoring the previous handlers
        """
        previous = {signum: signal.signal(signum, self.handle_signal) for signum in signals}

        def restore() -> None:
            for signum, handler in previous.items():
                signal.signal(signum, handler)

        return restore


class IndicatorRunner:
    """
    Connect, acquire, then pulse on every actionable record until stopped.

    ``run`` returns the process exit status: 0 on clean end-of-stream,
    the errno of an I/O or hardware failure, ExitCode.INTERRUPTED after
    a termination request.
    """

    def __init__(
        self,
        controller: DigitalOutputController,
        connection: LircConnection,
        pin: int,
        sequencer: Optional[PulseSequencer] = None,
        event_filter: Optional[EventFilter] = None,
        coordinator: Optional[ShutdownCoordinator] = None,
    ):
        self._controller = controller
        self._connection = connection
        self._pin = pin
        self._sequencer = sequencer or PulseSequencer()
        self._event_filter = event_filter or EventFilter()
        self._coordinator = coordinator or ShutdownCoordinator(controller, pin)
        self._state = RunState.STARTING
        self._shutdown_reason: Optional[ShutdownReason] = None
        self._records_read = 0
        self._pulse_count = 0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def shutdown_reason(self) -> Optional[ShutdownReason]:
        return self._shutdown_reason

    @property
    def coordinator(self) -> ShutdownCoordinator:
        return self._coordinator

    @property
    def pulse_count(self) -> int:
        return self._pulse_count

    @property
    def records_read(self) -> int:
        return self._records_read

    def _set_state(self, new_state: RunState) -> None:
        if self._state != new_state:
            logger.debug(f"Runner state: {self._state.name} -> {new_state.name}")
            self._state = new_state

    def run(self, address: str) -> int:
        if self._state != RunState.STARTING:
            raise RuntimeError("IndicatorRunner can only be run once")

        status = int(ExitCode.SUCCESS)
        try:
            self._set_state(RunState.CONNECTING)
            self._connection.connect(address)
            self._coordinator.checkpoint()

            self._set_state(RunState.ACQUIRING)
            self._coordinator.acquire()
            self._controller.configure_as_output(self._pin)
            self._coordinator.checkpoint()

            self._set_state(RunState.RUNNING)
            self._loop()
            self._coordinator.checkpoint()
            self._shutdown_reason = ShutdownReason.EOF
            logger.info("LIRC socket closed, shutting down")
        except Interrupted as e:
            self._shutdown_reason = ShutdownReason.INTERRUPTED
            status = e.exit_code
            logger.info(f"{e}, shutting down")
        except EventSourceConnectionError as e:
            self._shutdown_reason = ShutdownReason.CONNECT_ERROR
            status = e.exit_code
            logger.error(f"{e}")
        except EventReadError as e:
            self._shutdown_reason = ShutdownReason.READ_ERROR
            status = e.exit_code
            logger.error(f"{e}")
        except IndicatorError as e:
            self._shutdown_reason = ShutdownReason.HARDWARE_ERROR
            status = e.exit_code
            logger.error(f"{e}")
        finally:
            self._coordinator.release()
            self._connection.close()
            self._set_state(RunState.TERMINATED)

        return status

    def _loop(self) -> None:
        while True:
            with self._coordinator.interruptible():
                record = self._connection.read_record()
            if not record:
                return
            self._records_read += 1
            self._coordinator.checkpoint()

            if self._event_filter.is_actionable(record):
                self._sequencer.pulse(self._controller, self._pin)
                self._pulse_count += 1
                self._coordinator.checkpoint()

            # repeats that queued up while the LED was lit
            self._connection.discard_buffered()
