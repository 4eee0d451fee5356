"""
Catalog storage interface.

The dispatcher only talks to this interface, which keeps it testable with
a fake store and leaves room for other backends.
"""

from abc import ABC, abstractmethod
from typing import Dict


class Storage(ABC):
    """
    Contract for a marketplace catalog.

    Every operation except add_item() answers with a human readable
    message instead of raising, because the message goes straight back to
    the client.
    """

    @abstractmethod
    def add_item(self, user: str, name: str, price: float) -> int:
        """
        List a new item for sale.

        Args:
            user: Owner of the item.
            name: Item name. Must not be empty or blank.
            price: Starting price. Must be greater than 0.

        Returns:
            The id assigned to the item.

        Raises:
            InvalidItemError: If the name is blank or the price is not positive.
        """

    @abstractmethod
    def buy_item(self, user: str, item_id: int) -> str:
        """Buy an item at its current price and mark it sold."""

    @abstractmethod
    def place_bid(self, user: str, item_id: int, amount: float) -> str:
        """Place a bid that must beat the item's current price."""

    @abstractmethod
    def view_bids(self, item_id: int) -> str:
        """Describe an item's bid history, oldest first."""

    @abstractmethod
    def remove_item(self, user: str, item_id: int) -> str:
        """Withdraw an unsold item. Only its owner may do this."""

    @abstractmethod
    def list_items(self) -> Dict[int, str]:
        """Map id -> description for every item still for sale."""
