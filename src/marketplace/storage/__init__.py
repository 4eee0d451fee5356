"""
Catalog storage.

    base.py      Storage interface used by the dispatcher
    memory.py    InMemoryStorage, Item and Bid
"""

from .base import Storage
from .memory import InMemoryStorage, Item, Bid

__all__ = ["Storage", "InMemoryStorage", "Item", "Bid"]
