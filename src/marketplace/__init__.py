"""
=============================================================================
MARKETPLACE - In-Memory Auction Marketplace over Raw TCP
=============================================================================

A single-process marketplace server. Clients connect over TCP, send one
text command at a time and get one text reply back, while the server keeps
a shared in-memory catalog of items and bids.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    MARKETPLACE ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. SELECTOR EVENT LOOP                                            │
    │      - One thread multiplexes every client                          │
    │      - One read = one command, one write = one reply                │
    │      - Idle shutdown after a spell with zero clients                │
    │                                                                      │
    │   2. COMMAND PROTOCOL                                               │
    │      - Space separated tokens, double quotes group words           │
    │      - Arity and type checks before any catalog access             │
    │                                                                      │
    │   3. CATALOG                                                        │
    │      - Items with owner, price, sold flag and bid history          │
    │      - Ids are never reused                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    marketplace/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m marketplace)
    ├── server.py            # MarketplaceServer: wires loop, protocol, storage
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # Exception hierarchy
    ├── access_log.py        # Per-command structured log
    ├── client.py            # Interactive line client
    ├── core/                # Networking
    │   ├── event_loop.py    # Selector loop, accept/read/write, stop()
    │   ├── connection.py    # ClientConnection wrapper
    │   ├── idle_timer.py    # Idle shutdown timer
    │   └── counters.py      # AtomicCounter
    ├── protocol/            # Command protocol
    │   ├── command.py       # Command, CommandKind
    │   ├── parser.py        # Line tokenizer
    │   └── dispatcher.py    # Validation and routing
    └── storage/             # Catalog
        ├── base.py          # Storage interface
        └── memory.py        # InMemoryStorage, Item, Bid

=============================================================================
QUICK START
=============================================================================

    $ python -m marketplace --port 6666
    $ python -m marketplace.client

    > list-item alice "red car" 10.0
    Response: Item listed with ID 0 by alice for $10.00
    > bid-item bob 0 15.0
    Response: Bid placed by bob for $15.0
    > view-bids 0
    Response: Bids for red car:
    bob - $15.00

=============================================================================
"""

__version__ = "1.0.0"

from .server import MarketplaceServer, create_server
from .config import ServerConfig
from .errors import MarketplaceError, InvalidItemError, ServerStartupError

__all__ = [
    "MarketplaceServer",
    "create_server",
    "ServerConfig",
    "MarketplaceError",
    "InvalidItemError",
    "ServerStartupError",
    "__version__",
]
