"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the marketplace server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m marketplace --port 7000                         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── MARKETPLACE_PORT=7000 python -m marketplace               │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the marketplace server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, write_timeout

    LIFECYCLE
    - idle_timeout

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "localhost"
    """The address to bind to."""

    port: int = 6666
    """
    The port number to listen on.
    0 asks the OS for any free port (handy in tests).
    """

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 1024
    """
    Size of a single read from a client, in bytes.
    One read is one command; anything longer is cut at this size.
    """

    write_timeout: float = 5.0
    """Upper bound in seconds for writing one reply to a client."""

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE
    # ─────────────────────────────────────────────────────────────────────

    idle_timeout: float = 10.0
    """
    Seconds the server may sit with zero connected clients before it
    shuts itself down.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Command log format: 'json' or 'text'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        MARKETPLACE_HOST          Bind address (default: localhost)
        MARKETPLACE_PORT          Port (default: 6666)
        MARKETPLACE_BUFFER_SIZE   Read size per command (default: 1024)
        MARKETPLACE_IDLE_TIMEOUT  Idle shutdown delay in seconds (default: 10)
        MARKETPLACE_LOG_LEVEL     Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("MARKETPLACE_HOST", "localhost"),
            port=int(os.getenv("MARKETPLACE_PORT", "6666")),
            buffer_size=int(os.getenv("MARKETPLACE_BUFFER_SIZE", "1024")),
            idle_timeout=float(os.getenv("MARKETPLACE_IDLE_TIMEOUT", "10")),
            log_level=os.getenv("MARKETPLACE_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at server construction so a bad value fails at startup,
        not on the first client.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.write_timeout <= 0:
            raise ValueError("write_timeout must be > 0")

        if self.idle_timeout <= 0:
            raise ValueError("idle_timeout must be > 0")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"Invalid log_format: {self.log_format!r}. "
                f"Must be one of {', '.join(LOG_FORMATS)}."
            )
