"""
Connection to the LIRC daemon's event socket.

lircd republishes every decoded button event as a newline-terminated
text line on a local stream socket, e.g.::

    0000000000f40bf0 00 KEY_POWER my_remote
    0000000000f40bf0 00 KEY_POWER_UP my_remote
"""

import logging
import socket
from typing import Optional

from lirc_indicator.core.errors import EventReadError, EventSourceConnectionError

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 128


class LircConnection:
    """
    Blocking reader for the lircd socket.

    ``read_record`` returns at most ``buffer_size`` bytes per call and
    ``b""`` once lircd has closed the socket. ``discard_buffered`` throws
    away everything that has arrived but not been read yet.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self._buffer_size = buffer_size
        self._sock: Optional[socket.socket] = None
        self._address: Optional[str] = None
        self._eof_pending = False

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def is_connected(self) -> bool:
        return self._sock is not None

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    def connect(self, address: str) -> None:
        """
        Open the stream socket at ``address``.

        Raises:
            EventSourceConnectionError: If the socket cannot be reached
        """
        if self._sock is not None:
            raise EventSourceConnectionError(f"Already connected to {self._address}")

        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as e:
            raise EventSourceConnectionError.from_os_error("Unable to create socket", e) from e

        try:
            sock.connect(address)
        except OSError as e:
            sock.close()
            raise EventSourceConnectionError.from_os_error(
                f"Unable to open LIRC socket {address}", e
            ) from e

        self._sock = sock
        self._address = address
        self._eof_pending = False
        logger.info(f"Connected to LIRC socket {address}")

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise EventReadError("LIRC socket is not connected")
        return self._sock

    def read_record(self) -> bytes:
        """
        Block until data or end-of-stream arrives.

        Returns:
            Up to ``buffer_size`` bytes; ``b""`` on clean end-of-stream

        Raises:
            EventReadError: On a genuine read failure
        """
        if self._eof_pending:
            return b""

        sock = self._require_socket()
        try:
            data = sock.recv(self._buffer_size)
        except OSError as e:
            raise EventReadError.from_os_error("read", e) from e

        logger.debug(f"Read {len(data)} bytes from LIRC socket")
        return data

    def discard_buffered(self) -> int:
        """
        Drop everything received so far but not yet read.

        An end-of-stream seen while draining is remembered, so the next
        ``read_record`` reports it.

        Returns:
            Number of bytes discarded
        """
        sock = self._require_socket()
        discarded = 0
        sock.setblocking(False)
        try:
            while True:
                try:
                    chunk = sock.recv(4096)
                except BlockingIOError:
                    break
                except OSError as e:
                    raise EventReadError.from_os_error("read", e) from e
                if not chunk:
                    self._eof_pending = True
                    break
                discarded += len(chunk)
        finally:
            sock.setblocking(True)

        if discarded:
            logger.debug(f"Discarded {discarded} buffered bytes")
        return discarded

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.debug(f"Closed LIRC socket {self._address}")

    def __enter__(self) -> "LircConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
