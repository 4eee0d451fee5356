"""
Interactive line client for the marketplace server.

    $ python -m marketplace.client --port 6666
    Connected to the server. Type commands or 'exit' to quit.
    > list-items
    Response: No items currently listed.
    > exit

Each line is sent as-is (UTF-8, no terminator) and exactly one reply is
read back before the next prompt, matching the server's one read = one
command rule.
"""

import argparse
import socket
import sys
from typing import Optional


DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6666
BUFFER_SIZE = 1024
EXIT_COMMAND = "exit"


class MarketplaceClient:
    """
    Blocking request/reply client.

    Usage:
        with MarketplaceClient("localhost", 6666) as client:
            print(client.send("list-items"))
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        buffer_size: int = BUFFER_SIZE,
        timeout: Optional[float] = 10.0,
    ):
        self.host = host
        self.port = port
        self.buffer_size = buffer_size
        self.timeout = timeout
        self._socket: Optional[socket.socket] = None

    def connect(self) -> None:
        self._socket = socket.create_connection((self.host, self.port), timeout=self.timeout)

    def send(self, line: str) -> str:
        """
        Send one command and wait for its reply.

        Raises:
            ConnectionError: If not connected or the server hung up.
        """
        if self._socket is None:
            raise ConnectionError("not connected")

        self._socket.sendall(line.encode("utf-8"))
        data = self._socket.recv(self.buffer_size)
        if not data:
            raise ConnectionError("server closed the connection")
        return data.decode("utf-8", errors="replace")

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def main(argv=None):
    parser = argparse.ArgumentParser(description="Interactive marketplace client")
    parser.add_argument("--host", "-H", default=DEFAULT_HOST, help=f"Server host (default: {DEFAULT_HOST})")
    parser.add_argument("--port", "-p", type=int, default=DEFAULT_PORT, help=f"Server port (default: {DEFAULT_PORT})")
    args = parser.parse_args(argv)

    client = MarketplaceClient(args.host, args.port, timeout=None)
    try:
        client.connect()
    except OSError as e:
        print(f"Connection to server failed: {e}")
        sys.exit(1)

    try:
        print(f"Connected to the server. Type commands or '{EXIT_COMMAND}' to quit.")
        while True:
            try:
                line = input("> ")
            except EOFError:
                break

            if line.lower() == EXIT_COMMAND:
                break
            # Nothing to send; TCP cannot carry an empty message
            if not line:
                continue

            try:
                reply = client.send(line)
            except OSError as e:
                print(f"Connection to server failed: {e}")
                sys.exit(1)
            print(f"Response: {reply}")
    finally:
        client.close()


if __name__ == "__main__":
    main()
