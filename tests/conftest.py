"""
lirc-indicator Test Configuration and Fixtures.

Provides shared fixtures for unit and integration tests.
"""

import os
import shutil
import socket
import tempfile
import threading
from collections import deque
from pathlib import Path
from typing import Optional

import pytest

from lirc_indicator.core.config import IndicatorConfig, set_config
from lirc_indicator.hal.boards.sysfs_board import SysfsOutputController
from lirc_indicator.hal.mock_board import MockOutputController


# =============================================================================
# Temporary Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def short_dir():
    """Provide a short temporary directory (AF_UNIX paths are length-limited)."""
    path = tempfile.mkdtemp(prefix="li", dir="/tmp")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def default_config():
    """Isolate tests from any ~/.lirc_indicator/config.json."""
    set_config(IndicatorConfig())
    yield
    set_config(IndicatorConfig())


# =============================================================================
# Mock Hardware Fixtures
# =============================================================================

@pytest.fixture
def mock_controller():
    """Provide a mock output controller."""
    return MockOutputController()


@pytest.fixture
def gpio_root(temp_dir):
    """Provide a fake /sys/class/gpio tree with pins 4 and 17 pre-created."""
    root = temp_dir / "gpio"
    root.mkdir()
    (root / "export").write_text("")
    (root / "unexport").write_text("")
    for pin in (4, 17):
        pin_dir = root / f"gpio{pin}"
        pin_dir.mkdir()
        (pin_dir / "direction").write_text("in\n")
        (pin_dir / "value").write_text("0\n")
    return root


@pytest.fixture
def sysfs_controller(gpio_root):
    """Provide a sysfs controller pointed at the fake tree."""
    return SysfsOutputController(root=gpio_root, export_settle_timeout=0)


# =============================================================================
# Event Source Fixtures
# =============================================================================

class ScriptedConnection:
    """
    Event source double.

    ``scheduled`` items are delivered one per read (bytes are returned,
    exceptions raised, callables called and their result returned).
    ``arrive`` queues records as if they came in while the loop was
    busy; those are read first unless ``discard_buffered`` drops them.
    """

    def __init__(self, records=(), connect_error: Optional[Exception] = None):
        self.scheduled = deque(records)
        self.buffered = deque()
        self.discarded: list[bytes] = []
        self.connect_error = connect_error
        self.address: Optional[str] = None
        self.closed = False
        self.reads = 0

    def connect(self, address: str) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.address = address

    def arrive(self, *records: bytes) -> None:
        self.buffered.extend(records)

    def read_record(self) -> bytes:
        self.reads += 1
        if self.buffered:
            return self.buffered.popleft()
        if not self.scheduled:
            return b""
        item = self.scheduled.popleft()
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item()
        return item

    def discard_buffered(self) -> int:
        count = sum(len(record) for record in self.buffered)
        self.discarded.extend(self.buffered)
        self.buffered.clear()
        return count

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def scripted_connection():
    """Provide a factory for scripted event sources."""
    return ScriptedConnection


class LircServer:
    """A throwaway lircd stand-in listening on a Unix socket."""

    def __init__(self, path: str):
        self.path = path
        self._sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._sock.bind(path)
        self._sock.listen(1)
        self._thread: Optional[threading.Thread] = None

    def accept(self) -> socket.socket:
        peer, _ = self._sock.accept()
        return peer

    def serve_once(self, payload: bytes = b"") -> None:
        """In the background: accept one client, send ``payload``, hang up."""

        def _serve():
            peer = self.accept()
            with peer:
                if payload:
                    peer.sendall(payload)

        self._thread = threading.Thread(target=_serve, daemon=True)
        self._thread.start()

    def close(self) -> None:
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._sock.close()
        if os.path.exists(self.path):
            os.unlink(self.path)


@pytest.fixture
def lirc_server(short_dir):
    """Provide a listening Unix socket standing in for lircd."""
    server = LircServer(os.path.join(short_dir, "lircd"))
    yield server
    server.close()
