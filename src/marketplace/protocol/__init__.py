"""
Command protocol: text line → Command → catalog call → reply text.

    command.py      Command value and CommandKind enum
    parser.py       Tokenizer with double-quote support
    dispatcher.py   Arity/type validation and routing to Storage
"""

from .command import Command, CommandKind
from .parser import CommandParser, parse_command
from .dispatcher import CommandDispatcher, CommandRoute, UNKNOWN_COMMAND

__all__ = [
    "Command",
    "CommandKind",
    "CommandParser",
    "parse_command",
    "CommandDispatcher",
    "CommandRoute",
    "UNKNOWN_COMMAND",
]
