"""
Exception hierarchy for lirc-indicator.

Every fatal condition is an IndicatorError. The run loop and the CLI map
an error to a process exit status through ``exit_code``: the operating
system errno when one is known, otherwise a generic failure.
"""

from typing import Optional

from lirc_indicator.core.types import ExitCode


class IndicatorError(Exception):
    """Base exception for indicator errors."""

    def __init__(self, message: str, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno

    @property
    def exit_code(self) -> int:
        if self.errno:
            return self.errno
        return int(ExitCode.FAILURE)

    @classmethod
    def from_os_error(cls, what: str, error: OSError) -> "IndicatorError":
        """Wrap an OSError, keeping its errno and naming the failing operation."""
        reason = error.strerror or str(error)
        return cls(f"{what}: {reason}", errno=error.errno)


class InvalidArgumentError(IndicatorError):
    """Raised for contract violations such as a bad pin number."""
    pass


class InvalidPinError(InvalidArgumentError):
    """Raised when a pin is not part of the board's exposed header."""

    def __init__(self, pin):
        self.pin = pin
        super().__init__(f"{pin} is not a valid GPIO pin number")


class InvalidLevelError(InvalidArgumentError):
    """Raised when a level other than 0 or 1 is written."""

    def __init__(self, pin: int, level):
        self.pin = pin
        self.level = level
        super().__init__(f"Value can only be 0 or 1. pin: {pin}, value {level}")


class ResourceUnavailableError(IndicatorError):
    """Raised when a pin cannot be acquired."""
    pass


class ConfigurationError(IndicatorError):
    """Raised when a pin cannot be configured, or a backend is unknown."""
    pass


class OutputWriteError(IndicatorError):
    """Raised when writing an output level fails."""
    pass


class EventSourceConnectionError(IndicatorError):
    """Raised when the LIRC socket cannot be reached."""
    pass


class EventReadError(IndicatorError):
    """Raised when reading from the LIRC socket fails (not on clean EOF)."""
    pass


class Interrupted(IndicatorError):
    """Raised to unwind the run loop after an external termination request."""

    def __init__(self, signum: Optional[int] = None):
        self.signum = signum
        super().__init__("Interrupted" if signum is None else f"Interrupted by signal {signum}")

    @property
    def exit_code(self) -> int:
        return int(ExitCode.INTERRUPTED)
