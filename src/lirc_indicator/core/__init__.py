"""
lirc-indicator core: configuration, error taxonomy, pulse timing and the
run loop that ties the event source to the output pin.
"""

from lirc_indicator.core.config import IndicatorConfig, get_config, set_config
from lirc_indicator.core.errors import IndicatorError
from lirc_indicator.core.pulse import PulseSequencer
from lirc_indicator.core.run_loop import IndicatorRunner, ShutdownCoordinator
from lirc_indicator.core.types import ExitCode, RunState, ShutdownReason

__all__ = [
    "ExitCode",
    "IndicatorConfig",
    "IndicatorError",
    "IndicatorRunner",
    "PulseSequencer",
    "RunState",
    "ShutdownCoordinator",
    "ShutdownReason",
    "get_config",
    "set_config",
]
