"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           EVENT LOOP                                 │
    │  • Owns the listening socket and the selector                        │
    │  • Accepts clients, reads one command per readiness event            │
    │  • Counts connected clients                                          │
    └───────────────┬───────────────────────────────────┬─────────────────┘
                    │                                   │
                    ▼                                   ▼
    ┌───────────────────────────────┐   ┌─────────────────────────────────┐
    │       CLIENT CONNECTION        │   │      IDLE SHUTDOWN TIMER        │
    │  • One accepted socket         │   │  • Armed at zero clients        │
    │  • read_command / send_response│   │  • Cancelled by a new client    │
    └───────────────────────────────┘   │  • Fires → EventLoop.stop()     │
                                        └─────────────────────────────────┘

=============================================================================
"""

from .connection import ClientConnection, ConnectionState
from .counters import AtomicCounter
from .event_loop import EventLoop, INTERNAL_ERROR
from .idle_timer import IdleShutdownTimer

__all__ = [
    "ClientConnection",
    "ConnectionState",
    "AtomicCounter",
    "EventLoop",
    "IdleShutdownTimer",
    "INTERNAL_ERROR",
]
