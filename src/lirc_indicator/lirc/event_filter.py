"""
Event filter deciding which lircd records trigger a pulse.

Remotes send a press, optional repeats and a release. Only the release
is ignored; it is recognised by a fixed marker anywhere in the record.
"""

from typing import Union

RELEASE_MARKER = "_UP "


class EventFilter:
    """Classifies raw records as actionable (press/repeat) or not (release)."""

    def __init__(self, marker: str = RELEASE_MARKER):
        if not marker:
            raise ValueError("Release marker must not be empty")
        self._marker = marker
        self._marker_bytes = marker.encode()

    @property
    def marker(self) -> str:
        return self._marker

    def is_actionable(self, record: Union[bytes, bytearray, str]) -> bool:
        if isinstance(record, str):
            return self._marker not in record
        return self._marker_bytes not in bytes(record)


_default_filter = EventFilter()


def is_actionable(record: Union[bytes, bytearray, str]) -> bool:
    """Classify ``record`` with the default release marker."""
    return _default_filter.is_actionable(record)
