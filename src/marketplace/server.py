"""
=============================================================================
MARKETPLACE SERVER
=============================================================================

Wires the pieces together:

    ┌──────────────┐  text   ┌───────────────┐ Command ┌────────────────────┐
    │  EventLoop   │ ──────► │ CommandParser │ ──────► │ CommandDispatcher  │
    │ (core/)      │         └───────────────┘         └─────────┬──────────┘
    │              │                                             │
    │              │ ◄───────────── reply text ──────────────────┤
    └──────────────┘                                             ▼
                                                       ┌────────────────────┐
                                                       │ InMemoryStorage    │
                                                       └────────────────────┘

=============================================================================
REQUEST FLOW
=============================================================================

    1. EventLoop reads one chunk from a ready client
    2. handle_request() parses it into a Command
    3. The dispatcher validates and calls the storage
    4. The command is written to the access log
    5. EventLoop sends the reply back on the same connection

=============================================================================
"""

import logging
import time
from typing import Optional, Tuple

from .access_log import CommandLogger
from .config import ServerConfig
from .core import ClientConnection, EventLoop
from .protocol import CommandDispatcher, CommandParser
from .storage import InMemoryStorage, Storage


logger = logging.getLogger(__name__)


class MarketplaceServer:
    """
    The marketplace server.

    Usage:
        server = MarketplaceServer(ServerConfig(port=6666))
        server.start()     # Blocks until stop() or idle shutdown

    From another thread:
        server.stop()

    Args:
        config: Server configuration. Defaults are used if not provided.
        storage: Catalog backend. A fresh InMemoryStorage if not provided.
    """

    def __init__(self, config: Optional[ServerConfig] = None, storage: Optional[Storage] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.storage = storage if storage is not None else InMemoryStorage()
        self._parser = CommandParser()
        self._dispatcher = CommandDispatcher(self.storage)
        self._command_logger = CommandLogger(self.config.log_format)
        self._loop = EventLoop(self.config, self.handle_request)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """
        Start serving (blocking).

        Raises:
            ServerStartupError: If the listening address cannot be bound.
        """
        self._setup_logging()
        try:
            self._loop.start()
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
            self._loop.stop()

    def stop(self) -> None:
        """Stop the server. Thread-safe and idempotent."""
        self._loop.stop()

    @property
    def is_running(self) -> bool:
        return self._loop.is_running

    @property
    def connected_clients(self) -> int:
        return self._loop.connected_clients

    @property
    def address(self) -> Tuple[str, int]:
        return self._loop.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._loop.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._loop.wait_for_shutdown(timeout)

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("marketplace").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_request(self, conn: ClientConnection, text: str) -> str:
        """
        Turn one command line into its reply.

        Runs on the event-loop thread; this is the only caller of the
        dispatcher and therefore of the storage.
        """
        started = time.perf_counter()

        command = self._parser.parse(text)
        reply = self._dispatcher.execute(command)

        duration_ms = (time.perf_counter() - started) * 1000
        self._command_logger.log(conn.id, conn.client_ip, command, reply, duration_ms)
        return reply


def create_server(config: Optional[ServerConfig] = None) -> MarketplaceServer:
    """Factory for a server with an empty in-memory catalog."""
    return MarketplaceServer(config)
