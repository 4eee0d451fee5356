"""
=============================================================================
MARKETPLACE EXCEPTIONS
=============================================================================

Most failures in the marketplace are NOT exceptions. A bid that is too low
or an item that is already sold is an ordinary answer, returned to the
client as text. Exceptions are reserved for the few places where the
caller must not carry on as if nothing happened:

    MarketplaceError
    ├── InvalidItemError      add_item() got an empty name or price <= 0
    └── ServerStartupError    the listening socket could not be bound

=============================================================================
"""


class MarketplaceError(Exception):
    """Base class for all marketplace errors."""


class InvalidItemError(MarketplaceError, ValueError):
    """
    Raised when an item cannot be created from the given arguments.

    Subclasses ValueError so callers that only care about "bad argument"
    can catch the builtin.
    """


class ServerStartupError(MarketplaceError):
    """
    Raised when the server cannot start listening.

    The underlying OSError is chained as __cause__.
    """

    def __init__(self, message: str, host: str, port: int):
        super().__init__(message)
        self.host = host
        self.port = port
