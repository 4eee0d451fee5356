"""
=============================================================================
COMMAND DISPATCHER
=============================================================================

Routes a parsed Command to the catalog, after checking its shape.

=============================================================================
DISPATCH FLOW
=============================================================================

    execute(Command("bid-item", ("bob", "0", "15.0")))
        │
        ├──► CommandKind.from_name()      unknown? → "Unknown command"
        │
        ├──► route table lookup           one CommandRoute per kind
        │
        ├──► 1. arity check               wrong count? → usage message
        │
        ├──► 2. argument conversion       "abc" as id? → invalid-argument message
        │
        └──► 3. storage call              reply relayed verbatim

    Steps 1 and 2 never touch the storage. A rejected command leaves the
    catalog exactly as it was.

=============================================================================
"""

import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, Sequence

from ..errors import InvalidItemError
from ..money import format_amount
from ..storage.base import Storage
from .command import Command, CommandKind


UNKNOWN_COMMAND = "Unknown command"
NO_ITEMS = "No items currently listed."
ITEMS_HEADER = "Items for sale:"

INVALID_ARGS_COUNT = 'Invalid count of arguments: "{name}" expects {arity} arguments. Example: "{usage}"'
INVALID_PRICE = "Invalid price: must be a number."
INVALID_ITEM_ID = "Invalid item ID: must be an integer."
INVALID_BID_INPUT = "Invalid input: item ID must be an integer and bid price a number."

# Plain signed base-10 integers only; int() alone would also take "1_000" and " 7 "
_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
# Decimal numbers with an optional exponent; float() alone would also take "1_000"
_DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)

# Item ids are 32-bit signed integers
ITEM_ID_MIN = -(2 ** 31)
ITEM_ID_MAX = 2 ** 31 - 1

Handler = Callable[[Sequence[str]], str]


@dataclass(frozen=True)
class CommandRoute:
    """
    A registered command.

    Attributes:
        kind: The command this route serves.
        arity: Exact number of arguments required.
        usage: Example shown when the arity is wrong.
        handler: Called with the raw argument strings once arity checks out.
    """

    kind: CommandKind
    arity: int
    usage: str
    handler: Handler


def parse_price(value: str) -> float:
    """
    Convert a price argument.

    Raises:
        ValueError: If the value is not a plain decimal number or does not
            fit in a float.
    """
    if not _DECIMAL_RE.fullmatch(value):
        raise ValueError(f"not a number: {value!r}")

    price = float(value)
    # "1e999" matches the pattern but overflows
    if not math.isfinite(price):
        raise ValueError(f"not a finite number: {value!r}")
    return price


def parse_item_id(value: str) -> int:
    """
    Convert an item id argument.

    Raises:
        ValueError: If the value is not a plain integer in the 32-bit
            signed range.
    """
    if not _INTEGER_RE.fullmatch(value):
        raise ValueError(f"not an integer: {value!r}")

    item_id = int(value)
    if not ITEM_ID_MIN <= item_id <= ITEM_ID_MAX:
        raise ValueError(f"out of range: {value!r}")
    return item_id


class CommandDispatcher:
    """
    Validates commands and executes them against a Storage.

    Usage:
        dispatcher = CommandDispatcher(InMemoryStorage())
        dispatcher.execute(parse_command("list-item alice car 10.0"))
        # 'Item listed with ID 0 by alice for $10.00'
    """

    def __init__(self, storage: Storage):
        self.storage = storage
        self._routes: Dict[CommandKind, CommandRoute] = {}

        self._register(CommandKind.LIST_ITEM, 3, "<username> <item_name> <price>", self._list_item)
        self._register(CommandKind.LIST_ITEMS, 0, "", self._list_items)
        self._register(CommandKind.BUY_ITEM, 2, "<username> <item_id>", self._buy_item)
        self._register(CommandKind.BID_ITEM, 3, "<username> <item_id> <bid_price>", self._bid_item)
        self._register(CommandKind.VIEW_BIDS, 1, "<item_id>", self._view_bids)
        self._register(CommandKind.REMOVE_ITEM, 2, "<username> <item_id>", self._remove_item)

    def _register(self, kind: CommandKind, arity: int, usage_args: str, handler: Handler) -> None:
        usage = f"{kind.value} {usage_args}" if usage_args else kind.value
        self._routes[kind] = CommandRoute(kind=kind, arity=arity, usage=usage, handler=handler)

    @property
    def routes(self) -> Dict[CommandKind, CommandRoute]:
        """Registered routes by kind (read-only view for introspection)."""
        return dict(self._routes)

    def execute(self, command: Command) -> str:
        """
        Execute a command and return the reply for the client.

        Args:
            command: Parsed client command.

        Returns:
            The reply text. Never raises for bad client input.
        """
        route = self._routes.get(command.kind)
        if route is None:
            return UNKNOWN_COMMAND

        if len(command.arguments) != route.arity:
            return INVALID_ARGS_COUNT.format(
                name=route.kind.value, arity=route.arity, usage=route.usage,
            )

        return route.handler(command.arguments)

    # =========================================================================
    # HANDLERS
    # =========================================================================
    # Arity is already checked when these run.

    def _list_item(self, args: Sequence[str]) -> str:
        user, name, raw_price = args
        try:
            price = parse_price(raw_price)
        except ValueError:
            return INVALID_PRICE

        try:
            item_id = self.storage.add_item(user, name, price)
        except InvalidItemError as e:
            return str(e)

        return f"Item listed with ID {item_id} by {user} for ${format_amount(price)}"

    def _list_items(self, args: Sequence[str]) -> str:
        items = self.storage.list_items()
        if not items:
            return NO_ITEMS

        lines = [ITEMS_HEADER]
        lines.extend(f"[{item_id}] {description}" for item_id, description in sorted(items.items()))
        return "\n".join(lines)

    def _buy_item(self, args: Sequence[str]) -> str:
        user, raw_id = args
        try:
            item_id = parse_item_id(raw_id)
        except ValueError:
            return INVALID_ITEM_ID

        return self.storage.buy_item(user, item_id)

    def _bid_item(self, args: Sequence[str]) -> str:
        user, raw_id, raw_amount = args
        try:
            item_id = parse_item_id(raw_id)
            amount = parse_price(raw_amount)
        except ValueError:
            return INVALID_BID_INPUT

        return self.storage.place_bid(user, item_id, amount)

    def _view_bids(self, args: Sequence[str]) -> str:
        (raw_id,) = args
        try:
            item_id = parse_item_id(raw_id)
        except ValueError:
            return INVALID_ITEM_ID

        return self.storage.view_bids(item_id)

    def _remove_item(self, args: Sequence[str]) -> str:
        user, raw_id = args
        try:
            item_id = parse_item_id(raw_id)
        except ValueError:
            return INVALID_ITEM_ID

        return self.storage.remove_item(user, item_id)
