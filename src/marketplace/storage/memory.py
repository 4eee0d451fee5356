"""
=============================================================================
IN-MEMORY CATALOG
=============================================================================

The authoritative store for items and bids. All business rules live here:
who may bid, who may remove, what "sold" freezes.

=============================================================================
ITEM IDS: AN ARENA, NOT A COUNTER + DICT
=============================================================================

Items are kept in a growable list and the id IS the list index:

    _items:  [ Item(car) | None | Item(bike) | Item(lamp) ]
               id 0        id 1   id 2         id 3
                           └── removed: the slot stays, empty, forever

    - add_item() appends, so ids are strictly increasing
    - remove_item() empties the slot, so an id is never handed out twice
    - lookups are O(1) list indexing

=============================================================================
ITEM LIFECYCLE
=============================================================================

    add_item()
        │
        ▼
    ┌────────┐  place_bid() (price goes up)
    │ UNSOLD │◄──────────────────┐
    └───┬──┬─┘───────────────────┘
        │  │
        │  └── remove_item() by owner ──► gone (slot empty)
        │
        └── buy_item() ──► ┌──────┐
                           │ SOLD │  frozen: no bids, no removal
                           └──────┘

=============================================================================
THREADING
=============================================================================

No locks. The store is only ever touched from the event-loop thread.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import InvalidItemError
from ..money import format_amount
from .base import Storage


ITEM_NOT_FOUND = "Item not found."
ITEM_ALREADY_SOLD = "Item already sold."
BID_ITEM_UNAVAILABLE = "Cannot place bid: item not found or already sold."
BID_ON_OWN_ITEM = "You cannot place a bid on your own item."
BID_TOO_LOW = (
    "Bid rejected: your bid of ${amount} is not higher than "
    "the current price of ${price}."
)
REMOVE_NOT_OWNER = "Only the item owner can remove it."
REMOVE_SOLD = "Item has already been sold and cannot be removed."


@dataclass(frozen=True)
class Bid:
    """An accepted bid. Never changed once recorded."""

    user: str
    amount: float


@dataclass
class Item:
    """
    An item listed for sale.

    Attributes:
        owner: User who listed the item.
        name: Display name, fixed at creation.
        price: Current price; starts at the asking price, raised by bids.
        sold: True once bought. Never goes back to False.
        bids: Accepted bids in the order they were placed.
    """

    owner: str
    name: str
    price: float
    sold: bool = False
    bids: List[Bid] = field(default_factory=list)

    def describe(self) -> str:
        """Format as '<name> (by <owner>) - $<price>', plus ' [SOLD]' if sold."""
        suffix = " [SOLD]" if self.sold else ""
        return f"{self.name} (by {self.owner}) - ${self.price}{suffix}"

    def __str__(self) -> str:
        return self.describe()


class InMemoryStorage(Storage):
    """
    Catalog kept entirely in process memory.

    Nothing survives a restart.

    Usage:
        storage = InMemoryStorage()
        item_id = storage.add_item("alice", "car", 10.0)
        storage.place_bid("bob", item_id, 15.0)
        storage.buy_item("charlie", item_id)
    """

    def __init__(self):
        # Slot index == item id; None marks a removed item
        self._items: List[Optional[Item]] = []

    def __len__(self) -> int:
        """Number of live (not removed) items, sold ones included."""
        return sum(1 for item in self._items if item is not None)

    def get_item(self, item_id: int) -> Optional[Item]:
        """
        Look up a live item.

        Returns:
            The item, or None if the id was never assigned or was removed.
        """
        # Negative ids must not wrap around to the end of the arena
        if item_id < 0 or item_id >= len(self._items):
            return None
        return self._items[item_id]

    def add_item(self, user: str, name: str, price: float) -> int:
        if name is None or not name.strip():
            raise InvalidItemError("Item name cannot be empty.")

        if price <= 0:
            raise InvalidItemError("Price must be greater than 0.")

        self._items.append(Item(owner=user, name=name, price=float(price)))
        return len(self._items) - 1

    def buy_item(self, user: str, item_id: int) -> str:
        item = self.get_item(item_id)
        if item is None:
            return ITEM_NOT_FOUND
        if item.sold:
            return ITEM_ALREADY_SOLD

        item.sold = True
        return f"Item bought by {user} for ${item.price}"

    def place_bid(self, user: str, item_id: int, amount: float) -> str:
        item = self.get_item(item_id)
        if item is None or item.sold:
            return BID_ITEM_UNAVAILABLE

        if item.owner == user:
            return BID_ON_OWN_ITEM

        amount = float(amount)
        if amount <= item.price:
            return BID_TOO_LOW.format(amount=format_amount(amount), price=format_amount(item.price))

        item.price = amount
        item.bids.append(Bid(user=user, amount=amount))
        return f"Bid placed by {user} for ${amount}"

    def view_bids(self, item_id: int) -> str:
        item = self.get_item(item_id)
        if item is None:
            return ITEM_NOT_FOUND

        lines = [f"Bids for {item.name}:"]
        lines.extend(f"{bid.user} - ${format_amount(bid.amount)}" for bid in item.bids)
        return "\n".join(lines)

    def remove_item(self, user: str, item_id: int) -> str:
        item = self.get_item(item_id)
        if item is None:
            return ITEM_NOT_FOUND

        if item.owner != user:
            return REMOVE_NOT_OWNER

        if item.sold:
            return REMOVE_SOLD

        self._items[item_id] = None
        return f"Item removed by {user}"

    def list_items(self) -> Dict[int, str]:
        return {
            item_id: item.describe()
            for item_id, item in enumerate(self._items)
            if item is not None and not item.sold
        }
