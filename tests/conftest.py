"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Callable, Generator, List

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from marketplace import MarketplaceServer, ServerConfig
from marketplace.protocol import CommandDispatcher
from marketplace.storage import InMemoryStorage


@pytest.fixture
def storage() -> InMemoryStorage:
    """Empty in-memory catalog."""
    return InMemoryStorage()


@pytest.fixture
def dispatcher(storage: InMemoryStorage) -> CommandDispatcher:
    """Dispatcher over the empty catalog."""
    return CommandDispatcher(storage)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def config(free_port: int) -> ServerConfig:
    """Test server configuration; long idle window so tests control shutdown."""
    return ServerConfig(
        host="127.0.0.1",
        port=free_port,
        idle_timeout=30.0,
        log_level="WARNING",
    )


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll until predicate() is true or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class ServerThread:
    """Runs a MarketplaceServer in a background thread."""

    def __init__(self, server: MarketplaceServer):
        self.server = server
        self._thread: threading.Thread = None
        self._clients: List[socket.socket] = []

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self) -> "ServerThread":
        self._thread = threading.Thread(target=self.server.start, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")
        return self

    def connect(self) -> socket.socket:
        """Open a client socket and wait until the server has counted it."""
        expected = self.server.connected_clients + 1
        sock = socket.create_connection(("127.0.0.1", self.port), timeout=5.0)
        self._clients.append(sock)
        wait_for(lambda: self.server.connected_clients >= expected)
        return sock

    def send(self, sock: socket.socket, line: str) -> str:
        """One request, one reply."""
        sock.sendall(line.encode("utf-8"))
        return sock.recv(65536).decode("utf-8")

    def stop(self):
        for sock in self._clients:
            sock.close()
        self._clients.clear()

        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[ServerThread, None, None]:
    """A started server on a free port."""
    server_thread = ServerThread(MarketplaceServer(config)).start()

    yield server_thread

    server_thread.stop()


@pytest.fixture(name="wait_for")
def wait_for_fixture() -> Callable[..., bool]:
    """The wait_for() polling helper, for tests outside this module."""
    return wait_for
