"""
LIRC event source: the socket connection to lircd and the rule that
decides which records deserve a pulse.
"""

from lirc_indicator.lirc.connection import DEFAULT_BUFFER_SIZE, LircConnection
from lirc_indicator.lirc.event_filter import RELEASE_MARKER, EventFilter, is_actionable

__all__ = [
    "DEFAULT_BUFFER_SIZE",
    "EventFilter",
    "LircConnection",
    "RELEASE_MARKER",
    "is_actionable",
]
