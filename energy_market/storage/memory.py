"""
In-memory storage backend: one dict per entity, keyed by record id.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Dict, List, Optional, TypeVar

from sqlmodel import SQLModel

from energy_market.core.constants import DEFAULT_LIMIT
from energy_market.core.exceptions import DuplicateUsername, DuplicateWalletAddress, NotFound
from energy_market.models.user import User, UserCreate
from energy_market.models.offer import EnergyOffer, EnergyOfferCreate
from energy_market.models.transaction import (
    EnergyTransaction,
    EnergyTransactionCreate,
    TransactionStatus,
)
from energy_market.models.generation import EnergyGeneration, EnergyGenerationCreate
from energy_market.storage.base import Storage, resolve_purchase
from energy_market.utils.time import utc_now

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=SQLModel)


def _copy(record: RecordT) -> RecordT:
    """Detached copy so callers never hold a reference into the maps."""
    return type(record)(**record.model_dump())


def _newest_first(records: List[RecordT]) -> List[RecordT]:
    # Ties on created_at fall back to id, matching the SQL ordering
    return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)


class MemoryStorage(Storage):
    """Process-local storage; contents vanish with the process."""

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._offers: Dict[str, EnergyOffer] = {}
        self._transactions: Dict[str, EnergyTransaction] = {}
        self._generation: Dict[str, EnergyGeneration] = {}
        self._purchase_lock = asyncio.Lock()

    # Users

    async def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return _copy(user) if user else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self._users.values():
            if user.username == username:
                return _copy(user)
        return None

    async def get_user_by_wallet_address(self, wallet_address: str) -> Optional[User]:
        for user in self._users.values():
            if user.wallet_address == wallet_address:
                return _copy(user)
        return None

    async def create_user(self, data: UserCreate) -> User:
        if await self.get_user_by_username(data.username):
            logger.warning("Rejected duplicate username=%s", data.username)
            raise DuplicateUsername(data.username)
        if data.wallet_address and await self.get_user_by_wallet_address(data.wallet_address):
            logger.warning("Rejected duplicate wallet=%s", data.wallet_address)
            raise DuplicateWalletAddress(data.wallet_address)

        user = User(**data.model_dump())
        self._users[user.id] = user
        logger.info("Created user id=%s type=%s", user.id, user.user_type.value)
        return _copy(user)

    async def update_user_wallet(self, user_id: str, wallet_address: str) -> User:
        user = self._users.get(user_id)
        if not user:
            raise NotFound("User", user_id)
        holder = await self.get_user_by_wallet_address(wallet_address)
        if holder and holder.id != user_id:
            logger.warning("Wallet %s already held by user %s", wallet_address, holder.id)
            raise DuplicateWalletAddress(wallet_address)

        user.wallet_address = wallet_address
        logger.info("Connected wallet for user id=%s", user_id)
        return _copy(user)

    # Offers

    async def get_energy_offers(self, limit: int = DEFAULT_LIMIT) -> List[EnergyOffer]:
        active = [offer for offer in self._offers.values() if offer.is_active]
        return [_copy(offer) for offer in _newest_first(active)[:limit]]

    async def get_energy_offer(self, offer_id: str) -> Optional[EnergyOffer]:
        offer = self._offers.get(offer_id)
        return _copy(offer) if offer else None

    async def get_offers_by_seller(self, seller_id: str) -> List[EnergyOffer]:
        offers = [offer for offer in self._offers.values() if offer.seller_id == seller_id]
        return [_copy(offer) for offer in _newest_first(offers)]

    async def create_energy_offer(self, data: EnergyOfferCreate) -> EnergyOffer:
        if data.seller_id not in self._users:
            raise NotFound("User", data.seller_id)

        offer = EnergyOffer(**data.model_dump(exclude={"is_active"}), is_active=True)
        self._offers[offer.id] = offer
        logger.info("Created offer id=%s seller=%s kwh=%s", offer.id, offer.seller_id, offer.energy_amount)
        return _copy(offer)

    async def update_offer_status(self, offer_id: str, is_active: bool) -> EnergyOffer:
        offer = self._offers.get(offer_id)
        if not offer:
            raise NotFound("Offer", offer_id)

        offer.is_active = is_active
        logger.info("Offer id=%s is_active=%s", offer_id, is_active)
        return _copy(offer)

    # Transactions

    async def get_transactions(
        self,
        user_id: Optional[str] = None,
        limit: int = DEFAULT_LIMIT
    ) -> List[EnergyTransaction]:
        transactions = list(self._transactions.values())
        if user_id:
            transactions = [
                tx for tx in transactions
                if tx.buyer_id == user_id or tx.seller_id == user_id
            ]
        return [_copy(tx) for tx in _newest_first(transactions)[:limit]]

    async def get_transaction(self, transaction_id: str) -> Optional[EnergyTransaction]:
        transaction = self._transactions.get(transaction_id)
        return _copy(transaction) if transaction else None

    async def create_transaction(self, data: EnergyTransactionCreate) -> EnergyTransaction:
        transaction = EnergyTransaction(
            **data.model_dump(exclude={"status"}),
            status=TransactionStatus.PENDING
        )
        self._transactions[transaction.id] = transaction
        logger.info("Created transaction id=%s offer=%s", transaction.id, transaction.offer_id)
        return _copy(transaction)

    async def update_transaction_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        transaction_hash: Optional[str] = None,
        block_number: Optional[int] = None
    ) -> EnergyTransaction:
        transaction = self._transactions.get(transaction_id)
        if not transaction:
            raise NotFound("Transaction", transaction_id)

        transaction.status = status
        if transaction_hash is not None:
            transaction.transaction_hash = transaction_hash
        if block_number is not None:
            transaction.block_number = block_number
        logger.info("Transaction id=%s status=%s", transaction_id, status.value)
        return _copy(transaction)

    async def purchase_offer(
        self,
        offer_id: str,
        buyer_id: str,
        energy_amount: Optional[Decimal] = None
    ) -> EnergyTransaction:
        async with self._purchase_lock:
            offer = self._offers.get(offer_id)
            if not offer:
                raise NotFound("Offer", offer_id)
            if buyer_id not in self._users:
                raise NotFound("User", buyer_id)
            amount, total_price = resolve_purchase(offer, buyer_id, energy_amount)

            transaction = EnergyTransaction(
                offer_id=offer.id,
                buyer_id=buyer_id,
                seller_id=offer.seller_id,
                energy_amount=amount,
                total_price=total_price,
                status=TransactionStatus.PENDING
            )
            offer.energy_amount = Decimal(offer.energy_amount) - amount
            if offer.energy_amount <= 0:
                offer.is_active = False
            self._transactions[transaction.id] = transaction

        logger.info(
            "Purchase offer=%s buyer=%s kwh=%s total=%s remaining=%s",
            offer_id, buyer_id, amount, total_price, offer.energy_amount,
        )
        return _copy(transaction)

    # Generation

    async def get_energy_generation(self, user_id: str) -> Optional[EnergyGeneration]:
        generation = self._generation.get(user_id)
        return _copy(generation) if generation else None

    async def update_energy_generation(
        self,
        user_id: str,
        data: EnergyGenerationCreate
    ) -> EnergyGeneration:
        if user_id not in self._users:
            raise NotFound("User", user_id)

        values = data.model_dump(exclude={"user_id"})
        generation = self._generation.get(user_id)
        if generation:
            for key, value in values.items():
                setattr(generation, key, value)
            generation.last_updated = utc_now()
        else:
            generation = EnergyGeneration(**values, user_id=user_id)
            self._generation[user_id] = generation
        logger.info("Upserted generation for user=%s", user_id)
        return _copy(generation)
