"""
=============================================================================
SELECTOR EVENT LOOP
=============================================================================

The connection multiplexer: one thread, many clients, no per-client threads.

=============================================================================
READINESS-BASED I/O
=============================================================================

Instead of blocking on one socket at a time, the loop asks the OS which
sockets are ready and only touches those:

    ┌───────────────────────────────────────────────────────────────────┐
    │                        selector.select()                           │
    │                    (the ONLY place we block)                       │
    └──────────┬──────────────────────┬──────────────────────┬──────────┘
               │                      │                      │
         listener ready          client ready           wakeup ready
               │                      │                      │
               ▼                      ▼                      ▼
        accept() + register     recv() one chunk        drain byte,
        clients += 1            parse + dispatch        re-check running
        cancel idle timer       sendall() reply
                                (or: peer gone → close,
                                 clients -= 1, re-arm at 0)

Everything after select() returns runs to completion before the next wait,
so two clients' commands are never interleaved and the catalog needs no
locks.

=============================================================================
STOPPING FROM ANOTHER THREAD
=============================================================================

stop() may be called by the idle timer thread or a signal handler while
the loop is parked inside select(). Clearing the flag alone would not be
noticed until some client happened to send data, so stop() also writes one
byte into a socketpair whose read end is registered with the selector
(the "self-pipe trick"). select() returns at once and the loop sees the
cleared flag.

    timer thread                        loop thread
    ────────────                        ───────────
    stop()                              select() ... blocked
      ├── stop_requested.set(), running.clear()
      └── wakeup_writer.send(b"\\0") ──► select() returns (wakeup ready)
                                        stop requested? → exit → cleanup

Shared between the two threads:
    _running          threading.Event   (serving right now)
    _stop_requested   threading.Event   (sticky: never cleared once set)
    _clients          AtomicCounter     (the connected-client count)

A stop() that lands before or during start() is kept in _stop_requested,
so start() returns as soon as the listener is open instead of serving.

=============================================================================
"""

import logging
import selectors
import signal
import socket
import threading
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from ..config import ServerConfig
from ..errors import ServerStartupError
from .connection import ClientConnection
from .counters import AtomicCounter
from .idle_timer import IdleShutdownTimer


logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"

RequestHandler = Callable[[ClientConnection, str], str]


class _Source(Enum):
    """Selector key tags for the two non-client sockets."""
    LISTENER = "listener"
    WAKEUP = "wakeup"


class EventLoop:
    """
    Single-threaded, selector-driven TCP server loop.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       EventLoop Internals                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start()            Blocks until stop()                            │
    │        ├──► _open()             bind, listen, selector, wakeup pair  │
    │        ├──► _setup_signals()    main thread only                     │
    │        ├──► idle timer arm()    no clients yet                       │
    │        ├──► _run()              select / dispatch loop               │
    │        └──► _cleanup()          close everything                     │
    │                                                                      │
    │    stop()             Any thread, idempotent                         │
    │        ├──► _stop_requested.set(), _running.clear()                  │
    │        └──► wake select()                                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Args:
        config: Server configuration (address, buffer size, idle timeout).
        request_handler: Turns (connection, command text) into reply text.
            Runs on the loop thread.

    Usage:
        loop = EventLoop(ServerConfig(), lambda conn, text: text.upper())
        loop.start()   # Blocks until stop() or idle shutdown
    """

    def __init__(self, config: ServerConfig, request_handler: RequestHandler):
        self.config = config
        self._handler = request_handler

        self._socket: Optional[socket.socket] = None
        self._selector: Optional[selectors.BaseSelector] = None
        self._address: Tuple[str, int] = (config.host, config.port)

        # Self-pipe for waking select(). Reentrant because a signal handler
        # can call stop() on the main thread while it already holds the lock
        self._wakeup_reader: Optional[socket.socket] = None
        self._wakeup_writer: Optional[socket.socket] = None
        self._wakeup_lock = threading.RLock()

        # State shared with the idle timer thread
        self._running = threading.Event()
        self._stop_requested = threading.Event()
        self._clients = AtomicCounter()

        self._ready = threading.Event()
        self._stopped = threading.Event()

        self._connections: Dict[str, ClientConnection] = {}
        self._idle_timer = IdleShutdownTimer(config.idle_timeout, self.stop)
        self._original_handlers: dict = {}

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        """Thread-safe liveness check."""
        return self._running.is_set() and not self._stop_requested.is_set()

    @property
    def connected_clients(self) -> int:
        return self._clients.value

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the real port once started with port 0."""
        return self._address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listener is bound. Returns False on timeout."""
        return self._ready.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop has stopped and cleaned up. Returns False on timeout."""
        return self._stopped.wait(timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """
        Bind and serve until stopped.

        Single use: once stop() has been called, start() binds, sees the
        request and cleans up without serving.

        Raises:
            ServerStartupError: If the address cannot be bound.
        """
        self._stopped.clear()
        self._open()

        try:
            if self._stop_requested.is_set():
                logger.info("Stop requested during startup, not serving")
                return

            self._running.set()
            self._setup_signals()

            host, port = self._address
            logger.info(f"Marketplace listening on {host}:{port}")
            self._ready.set()

            # Nobody is connected yet, so the idle countdown starts right away
            self._idle_timer.arm()

            self._run()
        finally:
            self._cleanup()

    def stop(self) -> None:
        """
        Ask the loop to stop.

        Safe from any thread and safe to call repeatedly. Returns
        immediately; use wait_for_shutdown() to wait for cleanup.
        """
        was_running = self.is_running
        self._stop_requested.set()
        self._running.clear()

        with self._wakeup_lock:
            if self._wakeup_writer is not None:
                try:
                    self._wakeup_writer.send(b"\0")
                except OSError:
                    # Full pipe: a wakeup is already pending
                    pass

        if was_running:
            logger.info("Stopping marketplace server...")

    def _open(self) -> None:
        """Create, bind and register the listener and the wakeup pair."""
        host, port = self.config.host, self.config.port

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        # Replies are small and interactive
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        try:
            sock.bind((host, port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {host}:{port}: {e}")
            raise ServerStartupError(f"failed to start server on {host}:{port}: {e}", host, port) from e

        sock.setblocking(False)
        self._socket = sock
        self._address = sock.getsockname()[:2]

        self._selector = selectors.DefaultSelector()
        self._selector.register(sock, selectors.EVENT_READ, data=_Source.LISTENER)

        reader, writer = socket.socketpair()
        reader.setblocking(False)
        writer.setblocking(False)
        with self._wakeup_lock:
            self._wakeup_reader, self._wakeup_writer = reader, writer
        self._selector.register(reader, selectors.EVENT_READ, data=_Source.WAKEUP)

    def _setup_signals(self) -> None:
        """Route SIGINT/SIGTERM to stop(). Only possible on the main thread."""
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.stop()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def _cleanup(self) -> None:
        """Release every socket and the timer."""
        self._running.clear()
        self._ready.clear()
        self._idle_timer.cancel()
        self._restore_signals()

        for conn in list(self._connections.values()):
            self._unregister(conn)
            conn.close()
        self._connections.clear()
        self._clients.reset()

        if self._selector is not None:
            self._selector.close()
            self._selector = None

        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        with self._wakeup_lock:
            for end in (self._wakeup_reader, self._wakeup_writer):
                if end is not None:
                    end.close()
            self._wakeup_reader = self._wakeup_writer = None

        logger.info("Marketplace server stopped")
        self._stopped.set()

    # =========================================================================
    # LOOP
    # =========================================================================

    def _run(self) -> None:
        while self.is_running:
            events = self._selector.select()

            for key, _mask in events:
                if key.data is _Source.LISTENER:
                    self._accept()
                elif key.data is _Source.WAKEUP:
                    self._drain_wakeup()
                else:
                    self._handle_readable(key.data)

    def _accept(self) -> None:
        try:
            client_socket, client_address = self._socket.accept()
        except BlockingIOError:
            return
        except OSError as e:
            logger.warning(f"Accept failed: {e}")
            return

        try:
            conn = ClientConnection(
                socket=client_socket,
                address=client_address[:2],
                buffer_size=self.config.buffer_size,
                write_timeout=self.config.write_timeout,
            )
            self._selector.register(conn.socket, selectors.EVENT_READ, data=conn)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not register client {client_address}: {e}")
            client_socket.close()
            return

        self._connections[conn.id] = conn
        count = self._clients.increment()
        self._idle_timer.cancel()

        logger.debug(f"[{conn.id}] Accepted {conn.client_ip}:{conn.client_port} ({count} connected)")

    def _handle_readable(self, conn: ClientConnection) -> None:
        try:
            text = conn.read_command()
        except BlockingIOError:
            return
        except OSError as e:
            logger.warning(f"[{conn.id}] Read failed: {e}")
            self._disconnect(conn)
            return

        if text is None:
            self._disconnect(conn)
            return

        try:
            reply = self._handler(conn, text)
        except Exception:
            logger.exception(f"[{conn.id}] Error while handling {text!r}")
            reply = INTERNAL_ERROR

        try:
            conn.send_response(reply)
        except OSError as e:
            logger.warning(f"[{conn.id}] Write failed: {e}")
            self._disconnect(conn)

    def _disconnect(self, conn: ClientConnection) -> None:
        """Drop a client and start the idle countdown if it was the last one."""
        self._unregister(conn)
        conn.close()
        if self._connections.pop(conn.id, None) is None:
            return

        remaining = self._clients.decrement()
        if remaining == 0 and self.is_running:
            self._idle_timer.arm()

    def _unregister(self, conn: ClientConnection) -> None:
        if self._selector is None or conn.is_closed:
            return
        try:
            self._selector.unregister(conn.socket)
        except (KeyError, ValueError):
            pass

    def _drain_wakeup(self) -> None:
        try:
            while self._wakeup_reader.recv(64):
                pass
        except BlockingIOError:
            pass
