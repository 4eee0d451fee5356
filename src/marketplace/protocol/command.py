"""
Command value types.

A Command is what one line of client input turns into: a name plus its
arguments, nothing more. CommandKind is the closed set of names the server
understands.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class CommandKind(Enum):
    """Supported commands, keyed by their wire name."""

    LIST_ITEM = "list-item"
    LIST_ITEMS = "list-items"
    BUY_ITEM = "buy-item"
    BID_ITEM = "bid-item"
    VIEW_BIDS = "view-bids"
    REMOVE_ITEM = "remove-item"
    UNKNOWN = ""

    @classmethod
    def from_name(cls, name: str) -> "CommandKind":
        """Map a wire name to its kind. Anything unrecognized is UNKNOWN."""
        if not name:
            return cls.UNKNOWN
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Command:
    """
    A parsed client command.

    Example:
        Command("bid-item", ("bob", "0", "15.0"))
    """

    name: str
    arguments: Tuple[str, ...] = ()

    @property
    def kind(self) -> CommandKind:
        return CommandKind.from_name(self.name)

    @property
    def is_empty(self) -> bool:
        """True for blank input (no name, no arguments)."""
        return not self.name and not self.arguments
