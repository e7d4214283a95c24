"""
Tests for lirc_indicator.core.run_loop module.

Drives IndicatorRunner with the mock controller and a scripted event
source, covering every way a run can end.
"""

import errno
import os
import signal

import pytest

from lirc_indicator.core.errors import (
    EventReadError,
    EventSourceConnectionError,
    Interrupted,
    ResourceUnavailableError,
)
from lirc_indicator.core.pulse import PulseSequencer
from lirc_indicator.core.run_loop import IndicatorRunner, ShutdownCoordinator
from lirc_indicator.core.types import ExitCode, RunState, ShutdownReason

PRESS = b"0000000000000000 00 KEY_POWER remote\n"
REPEAT = b"0000000000000000 01 KEY_POWER remote\n"
RELEASE = b"0000000000000000 00 KEY_POWER_UP remote\n"


def unexports(controller):
    return [op for op in controller.operations if op[0] == "unexport"]


class TestShutdownCoordinator:
    """Tests for ShutdownCoordinator."""

    @pytest.fixture
    def coordinator(self, mock_controller):
        return ShutdownCoordinator(mock_controller, 4)

    def test_release_without_acquire_is_noop(self, coordinator, mock_controller):
        assert coordinator.release() is False
        assert mock_controller.operations == []

    def test_release_happens_once(self, coordinator, mock_controller):
        coordinator.acquire()

        assert coordinator.release() is True
        assert coordinator.release() is False
        assert len(unexports(mock_controller)) == 1
        assert coordinator.is_released

    def test_second_acquire_rejected(self, coordinator):
        coordinator.acquire()

        with pytest.raises(ResourceUnavailableError):
            coordinator.acquire()

    def test_failed_acquire_leaves_nothing_to_release(self, coordinator, mock_controller):
        mock_controller.fail_on("export")

        with pytest.raises(ResourceUnavailableError):
            coordinator.acquire()

        assert coordinator.release() is False
        assert unexports(mock_controller) == []

    def test_release_failure_is_logged_not_raised(self, coordinator, mock_controller, caplog):
        coordinator.acquire()
        mock_controller.fail_on("unexport", message="Unable to write to GPIO unexport interface")

        assert coordinator.release() is True
        assert "unexport" in caplog.text
        assert not mock_controller.is_acquired(4)

    def test_checkpoint(self, coordinator):
        coordinator.checkpoint()

        coordinator.request_shutdown(signal.SIGTERM)

        with pytest.raises(Interrupted) as exc_info:
            coordinator.checkpoint()
        assert exc_info.value.signum == signal.SIGTERM

    def test_signal_outside_blocking_read_only_sets_flag(self, coordinator):
        coordinator.handle_signal(signal.SIGINT, None)

        assert coordinator.cancelled

    def test_signal_inside_blocking_read_raises(self, coordinator):
        with pytest.raises(Interrupted):
            with coordinator.interruptible():
                coordinator.handle_signal(signal.SIGINT, None)

    def test_interruptible_checks_pending_request(self, coordinator):
        coordinator.request_shutdown()

        with pytest.raises(Interrupted):
            with coordinator.interruptible():
                pytest.fail("blocking section entered after shutdown request")

    def test_signal_right_after_entry_check_raises(self, mock_controller):
        """A signal landing between the entry check and the read is not lost."""

        class LateSignalCoordinator(ShutdownCoordinator):
            def checkpoint(self):
                super().checkpoint()
                self.handle_signal(signal.SIGINT, None)

        coordinator = LateSignalCoordinator(mock_controller, 4)

        with pytest.raises(Interrupted):
            with coordinator.interruptible():
                pytest.fail("blocking section entered with a signal pending")

    def test_install_and_restore_signal_handlers(self, coordinator):
        before = signal.getsignal(signal.SIGINT)

        restore = coordinator.install_signal_handlers()
        try:
            assert signal.getsignal(signal.SIGINT) == coordinator.handle_signal
            assert signal.getsignal(signal.SIGTERM) == coordinator.handle_signal
        finally:
            restore()

        assert signal.getsignal(signal.SIGINT) == before


class TestIndicatorRunner:
    """Tests for IndicatorRunner."""

    @pytest.fixture
    def sequencer(self):
        return PulseSequencer(sleep=lambda _: None)

    @pytest.fixture
    def make_runner(self, mock_controller, sequencer):
        def _make(connection, pin=4, **kwargs):
            kwargs.setdefault("sequencer", sequencer)
            return IndicatorRunner(mock_controller, connection, pin, **kwargs)

        return _make

    def test_press_pulses_release_does_not(self, make_runner, scripted_connection, mock_controller):
        """A press pulses once; the matching release does nothing."""
        connection = scripted_connection([PRESS, RELEASE])
        runner = make_runner(connection)

        status = runner.run("/var/run/lirc/lircd")

        assert status == 0
        assert runner.pulse_count == 1
        assert runner.records_read == 2
        assert mock_controller.level_writes(4) == [1, 0]

    def test_operation_order(self, make_runner, scripted_connection, mock_controller):
        runner = make_runner(scripted_connection([PRESS]))

        runner.run("/var/run/lirc/lircd")

        assert mock_controller.operations == [
            ("export", 4, None),
            ("direction", 4, None),
            ("value", 4, 1),
            ("value", 4, 0),
            ("unexport", 4, None),
        ]

    def test_each_actionable_record_pulses_once(self, make_runner, scripted_connection):
        runner = make_runner(scripted_connection([PRESS, REPEAT, REPEAT, RELEASE, PRESS]))

        runner.run("/var/run/lirc/lircd")

        assert runner.pulse_count == 4

    def test_clean_eof(self, make_runner, scripted_connection, mock_controller):
        """Immediate end-of-stream: no pulses, pin released, status 0."""
        connection = scripted_connection([])
        runner = make_runner(connection, pin=17)

        status = runner.run("/tmp/test.sock")

        assert status == ExitCode.SUCCESS
        assert runner.pulse_count == 0
        assert runner.shutdown_reason == ShutdownReason.EOF
        assert runner.state == RunState.TERMINATED
        assert unexports(mock_controller) == [("unexport", 17, None)]
        assert connection.address == "/tmp/test.sock"
        assert connection.closed

    def test_backlog_during_pulse_is_discarded(self, mock_controller, scripted_connection):
        """Repeats that arrive while the LED is lit never trigger a pulse."""
        connection = scripted_connection([PRESS])
        sequencer = PulseSequencer(sleep=lambda _: connection.arrive(REPEAT, REPEAT, REPEAT))
        runner = IndicatorRunner(mock_controller, connection, 4, sequencer=sequencer)

        runner.run("/var/run/lirc/lircd")

        assert runner.pulse_count == 1
        assert connection.discarded == [REPEAT, REPEAT, REPEAT]

    def test_connect_failure_never_touches_hardware(
        self, make_runner, scripted_connection, mock_controller
    ):
        error = EventSourceConnectionError("Unable to open LIRC socket /nope: No such file", errno=errno.ENOENT)
        runner = make_runner(scripted_connection(connect_error=error))

        status = runner.run("/nope")

        assert status == errno.ENOENT
        assert runner.shutdown_reason == ShutdownReason.CONNECT_ERROR
        assert mock_controller.operations == []

    def test_acquire_failure_is_not_released(self, make_runner, scripted_connection, mock_controller):
        mock_controller.fail_on("export", errno=errno.EBUSY)
        runner = make_runner(scripted_connection([PRESS]))

        status = runner.run("/var/run/lirc/lircd")

        assert status == errno.EBUSY
        assert runner.shutdown_reason == ShutdownReason.HARDWARE_ERROR
        assert mock_controller.operations == []

    def test_configure_failure_releases(self, make_runner, scripted_connection, mock_controller):
        mock_controller.fail_on("direction", errno=errno.EACCES)
        runner = make_runner(scripted_connection([PRESS]))

        status = runner.run("/var/run/lirc/lircd")

        assert status == errno.EACCES
        assert mock_controller.operations == [("export", 4, None), ("unexport", 4, None)]

    def test_read_failure_releases(self, make_runner, scripted_connection, mock_controller):
        error = EventReadError("read: Input/output error", errno=errno.EIO)
        runner = make_runner(scripted_connection([PRESS, error]))

        status = runner.run("/var/run/lirc/lircd")

        assert status == errno.EIO
        assert runner.shutdown_reason == ShutdownReason.READ_ERROR
        assert len(unexports(mock_controller)) == 1

    def test_write_failure_releases(self, make_runner, scripted_connection, mock_controller):
        mock_controller.fail_on("value", errno=errno.EIO)
        runner = make_runner(scripted_connection([PRESS]))

        status = runner.run("/var/run/lirc/lircd")

        assert status == errno.EIO
        assert len(unexports(mock_controller)) == 1

    def test_interrupt_during_read(self, make_runner, scripted_connection, mock_controller):
        """An interrupt while blocked on the socket releases once and exits 130."""
        connection = scripted_connection()
        runner = make_runner(connection)

        def interrupt():
            runner.coordinator.handle_signal(signal.SIGINT, None)
            return PRESS

        connection.scheduled.extend([PRESS, interrupt, PRESS])

        status = runner.run("/var/run/lirc/lircd")

        assert status == ExitCode.INTERRUPTED
        assert runner.shutdown_reason == ShutdownReason.INTERRUPTED
        assert runner.pulse_count == 1
        assert len(unexports(mock_controller)) == 1

    def test_signal_racing_eof_exits_interrupted(
        self, make_runner, scripted_connection, mock_controller
    ):
        """A shutdown request that lands as the stream ends still exits 130."""
        connection = scripted_connection()
        runner = make_runner(connection)

        def signal_then_eof():
            runner.coordinator.request_shutdown(signal.SIGTERM)
            return b""

        connection.scheduled.extend([PRESS, signal_then_eof])

        status = runner.run("/var/run/lirc/lircd")

        assert status == ExitCode.INTERRUPTED
        assert runner.shutdown_reason == ShutdownReason.INTERRUPTED
        assert runner.pulse_count == 1
        assert len(unexports(mock_controller)) == 1

    def test_interrupt_during_pulse_lets_pulse_finish(self, mock_controller, scripted_connection):
        connection = scripted_connection([PRESS, PRESS])
        runner_box = []
        sequencer = PulseSequencer(
            sleep=lambda _: runner_box[0].coordinator.handle_signal(signal.SIGTERM, None)
        )
        runner = IndicatorRunner(mock_controller, connection, 4, sequencer=sequencer)
        runner_box.append(runner)

        status = runner.run("/var/run/lirc/lircd")

        assert status == ExitCode.INTERRUPTED
        assert mock_controller.level_writes(4) == [1, 0]
        assert mock_controller.operations[-1] == ("unexport", 4, None)
        assert len(unexports(mock_controller)) == 1

    def test_real_sigint_during_read(self, make_runner, scripted_connection, mock_controller):
        """A genuine SIGINT delivered while reading unwinds the loop."""
        connection = scripted_connection()
        runner = make_runner(connection)

        def deliver_sigint():
            os.kill(os.getpid(), signal.SIGINT)
            return PRESS

        connection.scheduled.append(deliver_sigint)
        restore = runner.coordinator.install_signal_handlers()
        try:
            status = runner.run("/var/run/lirc/lircd")
        finally:
            restore()

        assert status == ExitCode.INTERRUPTED
        assert runner.pulse_count == 0
        assert len(unexports(mock_controller)) == 1

    def test_interrupt_before_acquire_skips_hardware(
        self, make_runner, scripted_connection, mock_controller
    ):
        runner = make_runner(scripted_connection([PRESS]))
        runner.coordinator.request_shutdown(signal.SIGINT)

        status = runner.run("/var/run/lirc/lircd")

        assert status == ExitCode.INTERRUPTED
        assert mock_controller.operations == []

    def test_run_only_once(self, make_runner, scripted_connection):
        runner = make_runner(scripted_connection([]))
        runner.run("/var/run/lirc/lircd")

        with pytest.raises(RuntimeError):
            runner.run("/var/run/lirc/lircd")
