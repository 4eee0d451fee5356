"""
Socket-level tests for the marketplace server and its event loop.
"""

import socket
import threading
import time

import pytest

from marketplace import MarketplaceServer, ServerConfig, ServerStartupError
from marketplace.core import EventLoop, INTERNAL_ERROR


class TestLifecycle:
    """Tests for start/stop and running state."""

    def test_start_and_stop(self, running_server):
        server = running_server.server

        assert server.is_running
        server.stop()

        assert not server.is_running
        assert server.wait_for_shutdown(timeout=5.0)

    def test_stop_is_idempotent(self, running_server):
        server = running_server.server

        server.stop()
        server.stop()

        assert server.wait_for_shutdown(timeout=5.0)
        server.stop()
        assert not server.is_running

    def test_stop_from_other_thread_wakes_loop(self, running_server):
        server = running_server.server

        threading.Thread(target=server.stop).start()

        assert server.wait_for_shutdown(timeout=2.0)

    def test_stop_racing_startup_is_not_lost(self):
        """Test that stop() issued while start() is still binding wins."""
        for _ in range(20):
            server = MarketplaceServer(ServerConfig(host="127.0.0.1", port=0, idle_timeout=30.0))
            thread = threading.Thread(target=server.start, daemon=True)
            thread.start()
            server.stop()

            assert server.wait_for_shutdown(timeout=1.0)
            assert not server.is_running
            thread.join(timeout=5.0)

    def test_stop_before_start(self, config):
        server = MarketplaceServer(config)
        server.stop()

        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()

        assert server.wait_for_shutdown(timeout=2.0)
        assert not server.is_running
        thread.join(timeout=5.0)
        assert not thread.is_alive()

    def test_bind_failure_raises_startup_error(self, free_port):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", free_port))
            blocker.listen(1)

            server = MarketplaceServer(ServerConfig(host="127.0.0.1", port=free_port))
            with pytest.raises(ServerStartupError) as exc_info:
                server.start()

        assert isinstance(exc_info.value.__cause__, OSError)
        assert exc_info.value.port == free_port
        assert not server.is_running

    def test_invalid_config_rejected_at_construction(self):
        with pytest.raises(ValueError):
            MarketplaceServer(ServerConfig(idle_timeout=0))

    def test_port_zero_reports_bound_port(self):
        server = MarketplaceServer(ServerConfig(host="127.0.0.1", port=0, idle_timeout=30.0))
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        try:
            assert server.wait_until_ready(timeout=5.0)
            assert server.address[1] != 0
        finally:
            server.stop()
            thread.join(timeout=5.0)


class TestCommands:
    """End-to-end command handling over TCP."""

    def test_marketplace_scenario(self, running_server):
        client = running_server.connect()

        assert running_server.send(client, "list-item alice car 10.0") == "Item listed with ID 0 by alice for $10.00"
        assert running_server.send(client, "bid-item bob 0 15.0") == "Bid placed by bob for $15.0"
        assert running_server.send(client, "view-bids 0") == "Bids for car:\nbob - $15.00"
        assert running_server.send(client, "buy-item charlie 0") == "Item bought by charlie for $15.0"
        assert running_server.send(client, "remove-item alice 0") == (
            "Item has already been sold and cannot be removed."
        )

    def test_unknown_command(self, running_server):
        client = running_server.connect()

        assert running_server.send(client, "fly-away") == "Unknown command"

    def test_validation_error_keeps_connection_open(self, running_server):
        client = running_server.connect()

        assert running_server.send(client, "buy-item bob abc") == "Invalid item ID: must be an integer."
        assert running_server.send(client, "list-items") == "No items currently listed."

    def test_trailing_newline_is_ignored(self, running_server):
        client = running_server.connect()

        assert running_server.send(client, "list-items\n") == "No items currently listed."
        assert running_server.send(client, "list-items\r\n") == "No items currently listed."

    def test_utf8_round_trip(self, running_server):
        client = running_server.connect()

        running_server.send(client, 'list-item zoë "café crème" 3.5')

        assert running_server.send(client, "list-items") == "Items for sale:\n[0] café crème (by zoë) - $3.5"

    def test_catalog_shared_between_clients(self, running_server):
        alice = running_server.connect()
        bob = running_server.connect()

        running_server.send(alice, "list-item alice lamp 2.0")

        assert running_server.send(bob, "bid-item bob 0 3.0") == "Bid placed by bob for $3.0"
        assert running_server.send(alice, "view-bids 0") == "Bids for lamp:\nbob - $3.00"

    def test_oversized_command_is_truncated(self, free_port):
        config = ServerConfig(host="127.0.0.1", port=free_port, buffer_size=16, idle_timeout=30.0)
        server = MarketplaceServer(config)
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        try:
            assert server.wait_until_ready(timeout=5.0)
            with socket.create_connection(("127.0.0.1", free_port), timeout=5.0) as client:
                # Only "list-item alice " fits in 16 bytes, so the arity is wrong
                client.sendall(b"list-item alice car 10.0")
                reply = client.recv(4096).decode("utf-8")

            assert reply.startswith('Invalid count of arguments: "list-item"')
        finally:
            server.stop()
            thread.join(timeout=5.0)

    def test_handler_error_answers_and_keeps_serving(self, config):
        calls = []

        def handler(conn, text):
            calls.append(text)
            if text == "boom":
                raise RuntimeError("handler exploded")
            return "ok"

        loop = EventLoop(config, handler)
        thread = threading.Thread(target=loop.start, daemon=True)
        thread.start()
        try:
            assert loop.wait_until_ready(timeout=5.0)
            with socket.create_connection(("127.0.0.1", config.port), timeout=5.0) as client:
                client.sendall(b"boom")
                assert client.recv(1024).decode() == INTERNAL_ERROR
                client.sendall(b"again")
                assert client.recv(1024).decode() == "ok"
            assert calls == ["boom", "again"]
        finally:
            loop.stop()
            thread.join(timeout=5.0)


class TestClientAccounting:
    """Tests for connected-client counting and idle shutdown."""

    def test_counts_connects_and_disconnects(self, running_server, wait_for):
        server = running_server.server
        first = running_server.connect()
        running_server.connect()

        assert server.connected_clients == 2

        first.close()
        assert wait_for(lambda: server.connected_clients == 1)

    def test_disconnect_does_not_affect_others(self, running_server, wait_for):
        server = running_server.server
        leaving = running_server.connect()
        staying = running_server.connect()

        leaving.close()
        assert wait_for(lambda: server.connected_clients == 1)

        assert running_server.send(staying, "list-items") == "No items currently listed."

    def test_idle_shutdown_without_clients(self, free_port):
        server = MarketplaceServer(ServerConfig(host="127.0.0.1", port=free_port, idle_timeout=0.3))
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()

        assert server.wait_until_ready(timeout=5.0)
        assert server.wait_for_shutdown(timeout=5.0)
        assert not server.is_running
        thread.join(timeout=5.0)
        assert not thread.is_alive()

    def test_connection_prevents_idle_shutdown(self, free_port, wait_for):
        server = MarketplaceServer(ServerConfig(host="127.0.0.1", port=free_port, idle_timeout=0.5))
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        assert server.wait_until_ready(timeout=5.0)

        client = socket.create_connection(("127.0.0.1", free_port), timeout=5.0)
        try:
            assert wait_for(lambda: server.connected_clients == 1)
            time.sleep(1.0)
            assert server.is_running
        finally:
            client.close()

        # Last client gone: the countdown starts over
        assert server.wait_for_shutdown(timeout=5.0)
        thread.join(timeout=5.0)

    def test_idle_shutdown_closes_nothing_while_clients_connected(self, free_port, wait_for):
        server = MarketplaceServer(ServerConfig(host="127.0.0.1", port=free_port, idle_timeout=0.3))
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        assert server.wait_until_ready(timeout=5.0)

        with socket.create_connection(("127.0.0.1", free_port), timeout=5.0) as a, \
                socket.create_connection(("127.0.0.1", free_port), timeout=5.0) as b:
            assert wait_for(lambda: server.connected_clients == 2)
            a.close()
            assert wait_for(lambda: server.connected_clients == 1)
            time.sleep(0.6)
            assert server.is_running
            b.sendall(b"list-items")
            assert b.recv(1024) == b"No items currently listed."

        assert server.wait_for_shutdown(timeout=5.0)
        thread.join(timeout=5.0)
