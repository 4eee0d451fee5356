"""
=============================================================================
COMMAND ACCESS LOG
=============================================================================

One structured record per executed command, on its own logger so it can be
routed or silenced separately from lifecycle logs:

    logging.getLogger("marketplace.access").setLevel(logging.WARNING)

=============================================================================
WHAT IS (AND IS NOT) LOGGED
=============================================================================

    ✓ connection id, client ip, command name, argument COUNT
    ✓ reply size, processing time, timestamp
    ✗ argument values: usernames, item names and prices stay out of logs

=============================================================================
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone

from .protocol.command import Command


logger = logging.getLogger("marketplace.access")


@dataclass
class CommandLog:
    """Structured log entry for one command."""

    connection_id: str
    client_ip: str
    command: str
    arg_count: int
    response_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Format as '<ip> [<ts>] "<cmd>" args=<n> <len>B <ms>ms'."""
        return (
            f'{self.client_ip} [{self.timestamp}] [{self.connection_id}] '
            f'"{self.command or "-"}" args={self.arg_count} '
            f'{self.response_length}B {self.duration_ms:.2f}ms'
        )


class CommandLogger:
    """
    Emits a CommandLog for each command the server executes.

    Args:
        log_format: 'text' for humans, 'json' for log aggregators.
    """

    def __init__(self, log_format: str = "text"):
        self.log_format = log_format

    def build(
        self,
        connection_id: str,
        client_ip: str,
        command: Command,
        response: str,
        duration_ms: float,
    ) -> CommandLog:
        return CommandLog(
            connection_id=connection_id,
            client_ip=client_ip,
            command=command.name,
            arg_count=len(command.arguments),
            response_length=len(response.encode("utf-8")),
            duration_ms=duration_ms,
            timestamp=datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def log(
        self,
        connection_id: str,
        client_ip: str,
        command: Command,
        response: str,
        duration_ms: float,
    ) -> CommandLog:
        entry = self.build(connection_id, client_ip, command, response, duration_ms)
        if self.log_format == "json":
            logger.info(json.dumps(entry.to_dict()))
        else:
            logger.info(entry.to_text())
        return entry
