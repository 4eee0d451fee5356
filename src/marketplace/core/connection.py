"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket for the event loop.

=============================================================================
ONE READ = ONE COMMAND
=============================================================================

The protocol has no delimiter and no length prefix. Clients follow a strict
request/reply rhythm:

    client                              server
      │  "bid-item bob 0 15.0"  ──────►   │  one recv(buffer_size)
      │                                   │  parse + dispatch
      │  ◄──────  "Bid placed by ..."     │  one reply
      │  (only now sends the next one)    │

So a single recv() of at most buffer_size bytes is taken to be exactly one
command. Consequences the server accepts rather than fights:

    - Longer than buffer_size?   Cut; the tail arrives as its own "command"
    - Two commands in one recv?  Parsed as one line
    - Command split over recvs?  Each half is parsed separately

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    OPEN ──────► PROCESSING ──────► OPEN ──► ... ──► CLOSED
      │                                                 ▲
      └─────────────────────────────────────────────────┘
                 (peer hangs up / transport error)

=============================================================================
"""

import socket
import time
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states."""
    OPEN = "open"                # Registered, waiting for the next command
    PROCESSING = "processing"    # Command read, reply not yet written
    CLOSED = "closed"            # Socket released


@dataclass
class ClientConnection:
    """
    A connected client.

    Attributes:
        socket: The non-blocking client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        last_activity: Timestamp of the last read or write.
        commands_handled: Number of replies written on this connection.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.OPEN
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    commands_handled: int = 0

    buffer_size: int = 1024
    write_timeout: float = 5.0

    def __post_init__(self):
        # The selector only works with non-blocking sockets
        self.socket.setblocking(False)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    def fileno(self) -> int:
        """Let the selector register the connection itself."""
        return self.socket.fileno()

    # =========================================================================
    # READING
    # =========================================================================

    def read_command(self) -> Optional[str]:
        """
        Read one command's worth of text.

        Returns:
            The decoded text with one trailing line terminator removed, or
            None if the peer closed the connection.

        Raises:
            BlockingIOError: Spurious wakeup, nothing to read yet.
            OSError: Transport failure (reset, etc.).
        """
        data = self.socket.recv(self.buffer_size)
        if not data:
            return None

        self.state = ConnectionState.PROCESSING
        self.last_activity = time.time()

        # A multi-byte character cut at buffer_size decodes as U+FFFD
        text = data.decode("utf-8", errors="replace")
        if text.endswith("\r\n"):
            return text[:-2]
        if text.endswith("\n"):
            return text[:-1]
        return text

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, text: str) -> None:
        """
        Write a full reply before returning.

        The socket is switched to timeout mode for the duration of
        sendall() so a slow reader cannot hang the event loop forever.

        Raises:
            OSError: Transport failure, including write timeout.
        """
        data = text.encode("utf-8")
        self.socket.settimeout(self.write_timeout)
        try:
            self.socket.sendall(data)
        finally:
            if self.socket.fileno() != -1:
                self.socket.setblocking(False)

        self.commands_handled += 1
        self.last_activity = time.time()
        self.state = ConnectionState.OPEN

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection from {self.client_ip}:{self.client_port} "
            f"closed after {self.commands_handled} commands in {self.age:.1f}s"
        )
