"""
Centralized Type Definitions for lirc-indicator.

Enums shared by the run loop, the CLI and the tests so that lifecycle
states and exit statuses are never compared as bare strings or numbers.
"""

from enum import Enum, IntEnum, auto


class RunState(Enum):
    """Lifecycle of a single indicator run."""

    STARTING = auto()
    CONNECTING = auto()
    ACQUIRING = auto()
    RUNNING = auto()
    TERMINATED = auto()


class ShutdownReason(Enum):
    """Why the run loop reached TERMINATED."""

    EOF = auto()
    CONNECT_ERROR = auto()
    HARDWARE_ERROR = auto()
    READ_ERROR = auto()
    INTERRUPTED = auto()


class ExitCode(IntEnum):
    """Fixed process exit statuses.

    I/O and hardware failures exit with the underlying errno instead.
    """

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130
