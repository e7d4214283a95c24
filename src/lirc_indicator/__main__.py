"""
lirc-indicator Main Entry Point

Pulses a GPIO output pin (eg to flash an LED) whenever anything is
received on the lirc socket.

Usage:
    lirc-indicator                          # default pin and socket
    lirc-indicator 17                       # pin 17, default socket
    lirc-indicator 17 /run/lirc/lircd       # pin 17 and socket path
    lirc-indicator -d 17                    # same, in the background
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from lirc_indicator import __version__
from lirc_indicator.core.config import IndicatorConfig, get_config
from lirc_indicator.core.errors import ConfigurationError, InvalidPinError
from lirc_indicator.core.pulse import PulseSequencer
from lirc_indicator.core.run_loop import IndicatorRunner
from lirc_indicator.core.types import ExitCode
from lirc_indicator.hal.base_output import validate_pin
from lirc_indicator.hal.boards import CONTROLLER_REGISTRY, create_controller
from lirc_indicator.lirc.connection import LircConnection
from lirc_indicator.lirc.event_filter import EventFilter

logger = logging.getLogger("lirc_indicator")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="lirc-indicator",
        description=(
            "Pulses the GPIO output pin (eg to flash an LED) whenever anything "
            "is received on the lirc socket"
        ),
    )
    parser.add_argument(
        "pin",
        nargs="?",
        type=int,
        help="GPIO pin to pulse (BCM numbering)",
    )
    parser.add_argument(
        "socket",
        nargs="?",
        help="Path of the lircd socket",
    )
    parser.add_argument(
        "-d",
        "--daemon",
        action="store_true",
        help="Run as daemon in background",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Display version",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Load settings from this JSON file",
    )
    parser.add_argument(
        "--backend",
        choices=sorted(CONTROLLER_REGISTRY),
        help="Output backend (default from configuration: sysfs)",
    )
    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging level."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )
    level = logging.DEBUG if debug else logging.INFO
    logging.getLogger("lirc_indicator").setLevel(level)


def daemonize() -> Optional[int]:
    """
    Fork into the background.

    Returns:
        None in the child, which carries on; the exit status the calling
        process should return otherwise
    """
    try:
        pid = os.fork()
    except OSError as e:
        logger.error(f"Unable to fork: {e.strerror}")
        return int(ExitCode.FAILURE)

    if pid > 0:
        return int(ExitCode.SUCCESS)

    os.setsid()
    return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code
    """
    args = parse_args(argv)
    setup_logging(args.debug)

    config = IndicatorConfig.load(args.config) if args.config else get_config()
    pin = args.pin if args.pin is not None else config.hardware.default_pin
    address = args.socket or config.lirc.socket_path

    try:
        validate_pin(pin)
    except InvalidPinError as e:
        logger.error(f"{e}")
        return int(ExitCode.FAILURE)

    try:
        controller = create_controller(args.backend or config.hardware.backend, config)
        event_filter = EventFilter(config.lirc.release_marker)
        connection = LircConnection(config.lirc.read_buffer_size)
        sequencer = PulseSequencer(config.timing.pulse_duration)
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return int(ExitCode.FAILURE)

    if args.daemon:
        status = daemonize()
        if status is not None:
            return status

    runner = IndicatorRunner(
        controller,
        connection,
        pin,
        sequencer=sequencer,
        event_filter=event_filter,
    )
    restore_signals = runner.coordinator.install_signal_handlers()
    try:
        return runner.run(address)
    finally:
        restore_signals()


if __name__ == "__main__":
    sys.exit(main())
