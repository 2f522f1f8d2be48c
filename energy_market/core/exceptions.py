"""
Domain exceptions raised by the storage layer and mapped to HTTP by routes.
"""


class MarketplaceError(Exception):
    """Base class for all marketplace domain errors."""


class NotFound(MarketplaceError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


class Conflict(MarketplaceError):
    """Raised when a write would violate a uniqueness or state rule."""


class DuplicateUsername(Conflict):
    """Raised when registering a username that is already taken."""

    def __init__(self, username):
        self.username = username
        super().__init__(f"Username already exists: {username}")


class DuplicateWalletAddress(Conflict):
    """Raised when a wallet address is already attached to another user."""

    def __init__(self, wallet_address):
        self.wallet_address = wallet_address
        super().__init__(f"Wallet address already in use: {wallet_address}")


class OfferUnavailable(Conflict):
    """Raised when an offer cannot be purchased in its current state."""

    def __init__(self, offer_id, reason):
        self.offer_id = offer_id
        self.reason = reason
        super().__init__(f"Offer {offer_id} unavailable: {reason}")


class Unauthorized(MarketplaceError):
    """Raised on bad credentials or a missing caller identity."""
