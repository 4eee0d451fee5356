"""
=============================================================================
MARKETPLACE SERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (localhost:6666, 10s idle shutdown)
    python -m marketplace

    # Custom port
    python -m marketplace --port 7000

    # Stay up longer without clients
    python -m marketplace --idle-timeout 300

    # JSON command log
    python -m marketplace --log-format json

Defaults come from the environment (see ServerConfig.from_env), so
MARKETPLACE_PORT=7000 python -m marketplace works too.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import LOG_FORMATS, ServerConfig
from .errors import ServerStartupError
from .server import MarketplaceServer


def main(argv=None):
    """Main CLI entry point."""
    defaults = ServerConfig.from_env()

    parser = argparse.ArgumentParser(
        description="In-memory marketplace server over raw TCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m marketplace                       # Run with defaults
  python -m marketplace --port 7000           # Custom port
  python -m marketplace --idle-timeout 300    # Longer idle window
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    parser.add_argument(
        "--buffer-size", "-b",
        type=int,
        default=defaults.buffer_size,
        help=f"Max bytes read per command (default: {defaults.buffer_size})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE / LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--idle-timeout", "-i",
        type=float,
        default=defaults.idle_timeout,
        help=f"Seconds without clients before shutting down (default: {defaults.idle_timeout:g})"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Command log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"marketplace {__version__}"
    )

    args = parser.parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        buffer_size=args.buffer_size,
        idle_timeout=args.idle_timeout,
        log_level=args.log_level,
        log_format=args.log_format,
    )

    try:
        server = MarketplaceServer(config)
        server.start()
    except (ServerStartupError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
