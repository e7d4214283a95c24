"""
lirc-indicator - visual feedback for infrared remote controls

Pulses a GPIO output pin (typically driving an LED) whenever a decoded
remote-control event arrives on the LIRC daemon's socket.
"""

__version__ = "0.1.0"
__author__ = "lirc-indicator contributors"

from lirc_indicator.core.run_loop import IndicatorRunner, ShutdownCoordinator

__all__ = ["IndicatorRunner", "ShutdownCoordinator", "__version__"]
