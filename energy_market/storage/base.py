"""
Storage interface shared by the in-memory and relational backends.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from energy_market.core.constants import DEFAULT_LIMIT, PRICE_QUANTUM
from energy_market.core.exceptions import OfferUnavailable
from energy_market.models.user import User, UserCreate
from energy_market.models.offer import EnergyOffer, EnergyOfferCreate
from energy_market.models.transaction import (
    EnergyTransaction,
    EnergyTransactionCreate,
    TransactionStatus,
)
from energy_market.models.generation import EnergyGeneration, EnergyGenerationCreate


class Storage(ABC):
    """
    Persistence for users, offers, transactions and generation snapshots.

    Records are returned as detached copies; relations between entities are
    plain ids resolved with a fresh lookup. Nothing is ever deleted.
    """

    async def startup(self) -> None:
        """Prepare the backend (create tables, open pools)."""

    async def shutdown(self) -> None:
        """Release backend resources."""

    # Users

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Exact username match; no partial matching."""

    @abstractmethod
    async def get_user_by_wallet_address(self, wallet_address: str) -> Optional[User]:
        ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User:
        """
        Create a user. The password is stored exactly as supplied, so callers
        hash it first.

        Raises:
            DuplicateUsername: username already registered
            DuplicateWalletAddress: wallet already attached to a user
        """

    @abstractmethod
    async def update_user_wallet(self, user_id: str, wallet_address: str) -> User:
        """
        Replace the user's wallet address (last write wins).

        Raises:
            NotFound: unknown user
            DuplicateWalletAddress: address held by another user
        """

    # Offers

    @abstractmethod
    async def get_energy_offers(self, limit: int = DEFAULT_LIMIT) -> List[EnergyOffer]:
        """Active offers only, newest first, at most `limit`."""

    @abstractmethod
    async def get_energy_offer(self, offer_id: str) -> Optional[EnergyOffer]:
        ...

    @abstractmethod
    async def get_offers_by_seller(self, seller_id: str) -> List[EnergyOffer]:
        """All of a seller's offers, active or not, newest first."""

    @abstractmethod
    async def create_energy_offer(self, data: EnergyOfferCreate) -> EnergyOffer:
        """
        Create an offer. It is always active on creation, whatever the input says.

        Raises:
            NotFound: seller does not exist
        """

    @abstractmethod
    async def update_offer_status(self, offer_id: str, is_active: bool) -> EnergyOffer:
        """
        Set the active flag; no other field changes.

        Raises:
            NotFound: unknown offer
        """

    # Transactions

    @abstractmethod
    async def get_transactions(
        self,
        user_id: Optional[str] = None,
        limit: int = DEFAULT_LIMIT
    ) -> List[EnergyTransaction]:
        """Transactions where the user is buyer or seller (all if no user), newest first."""

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[EnergyTransaction]:
        ...

    @abstractmethod
    async def create_transaction(self, data: EnergyTransactionCreate) -> EnergyTransaction:
        """
        Record a transaction with status "pending".

        The referenced offer is neither checked nor modified; use
        `purchase_offer` for the combined operation.
        """

    @abstractmethod
    async def update_transaction_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        transaction_hash: Optional[str] = None,
        block_number: Optional[int] = None
    ) -> EnergyTransaction:
        """
        Replace the status. Hash and block number are only replaced when given.

        Raises:
            NotFound: unknown transaction
        """

    @abstractmethod
    async def purchase_offer(
        self,
        offer_id: str,
        buyer_id: str,
        energy_amount: Optional[Decimal] = None
    ) -> EnergyTransaction:
        """
        Buy energy from an offer in one step.

        Creates a pending transaction priced at amount * price_per_kwh, takes
        the amount off the offer and deactivates it once nothing remains.

        Raises:
            NotFound: unknown offer or buyer
            OfferUnavailable: offer inactive, bought by its own seller, or
                the amount exceeds what remains
        """

    # Generation

    @abstractmethod
    async def get_energy_generation(self, user_id: str) -> Optional[EnergyGeneration]:
        ...

    @abstractmethod
    async def update_energy_generation(
        self,
        user_id: str,
        data: EnergyGenerationCreate
    ) -> EnergyGeneration:
        """
        Upsert the user's single generation row and refresh last_updated.

        Raises:
            NotFound: unknown user
        """


def resolve_purchase(
    offer: EnergyOffer,
    buyer_id: str,
    energy_amount: Optional[Decimal]
) -> tuple[Decimal, Decimal]:
    """
    Validate a purchase against an offer's current state.

    Returns:
        (amount, total_price) for the transaction to record
    """
    if not offer.is_active:
        raise OfferUnavailable(offer.id, "offer is not active")
    if offer.seller_id == buyer_id:
        raise OfferUnavailable(offer.id, "sellers cannot buy their own offer")

    remaining = Decimal(offer.energy_amount)
    amount = remaining if energy_amount is None else Decimal(energy_amount)
    if amount <= 0:
        raise OfferUnavailable(offer.id, "no energy remaining")
    if amount > remaining:
        raise OfferUnavailable(offer.id, f"requested {amount} kWh, {remaining} kWh remaining")

    total_price = (amount * Decimal(offer.price_per_kwh)).quantize(PRICE_QUANTUM)
    return amount, total_price
