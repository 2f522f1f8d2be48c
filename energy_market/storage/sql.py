"""
Relational storage backend using SQLModel tables over an async SQLAlchemy engine.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import select

from energy_market.core.constants import DEFAULT_LIMIT
from energy_market.core.database import close_db, create_sessionmaker, init_db
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


class SQLStorage(Storage):
    """
    Storage backed by a relational database.

    Each operation runs in its own session and commits once, so a single call
    is atomic but a sequence of calls is not.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._sessionmaker: async_sessionmaker[AsyncSession] = create_sessionmaker(engine)

    async def startup(self) -> None:
        await init_db(self.engine)

    async def shutdown(self) -> None:
        await close_db(self.engine)

    # Users

    async def get_user(self, user_id: str) -> Optional[User]:
        async with self._sessionmaker() as session:
            return await session.get(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self._sessionmaker() as session:
            result = await session.execute(select(User).where(User.username == username))
            return result.scalars().first()

    async def get_user_by_wallet_address(self, wallet_address: str) -> Optional[User]:
        async with self._sessionmaker() as session:
            result = await session.execute(
                select(User).where(User.wallet_address == wallet_address)
            )
            return result.scalars().first()

    async def create_user(self, data: UserCreate) -> User:
        if await self.get_user_by_username(data.username):
            logger.warning("Rejected duplicate username=%s", data.username)
            raise DuplicateUsername(data.username)
        if data.wallet_address and await self.get_user_by_wallet_address(data.wallet_address):
            logger.warning("Rejected duplicate wallet=%s", data.wallet_address)
            raise DuplicateWalletAddress(data.wallet_address)

        user = User(**data.model_dump())
        async with self._sessionmaker() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError:
                # Lost a race with a concurrent registration
                await session.rollback()
                if await self.get_user_by_username(data.username):
                    raise DuplicateUsername(data.username)
                if data.wallet_address:
                    raise DuplicateWalletAddress(data.wallet_address)
                raise
            await session.refresh(user)

        logger.info("Created user id=%s type=%s", user.id, user.user_type.value)
        return user

    async def update_user_wallet(self, user_id: str, wallet_address: str) -> User:
        async with self._sessionmaker() as session:
            user = await session.get(User, user_id)
            if not user:
                raise NotFound("User", user_id)

            result = await session.execute(
                select(User).where(User.wallet_address == wallet_address, User.id != user_id)
            )
            holder = result.scalars().first()
            if holder:
                logger.warning("Wallet %s already held by user %s", wallet_address, holder.id)
                raise DuplicateWalletAddress(wallet_address)

            user.wallet_address = wallet_address
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise DuplicateWalletAddress(wallet_address)
            await session.refresh(user)

        logger.info("Connected wallet for user id=%s", user_id)
        return user

    # Offers

    async def get_energy_offers(self, limit: int = DEFAULT_LIMIT) -> List[EnergyOffer]:
        statement = (
            select(EnergyOffer)
            .where(EnergyOffer.is_active == True)  # noqa: E712
            .order_by(EnergyOffer.created_at.desc(), EnergyOffer.id.desc())
            .limit(limit)
        )
        async with self._sessionmaker() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def get_energy_offer(self, offer_id: str) -> Optional[EnergyOffer]:
        async with self._sessionmaker() as session:
            return await session.get(EnergyOffer, offer_id)

    async def get_offers_by_seller(self, seller_id: str) -> List[EnergyOffer]:
        statement = (
            select(EnergyOffer)
            .where(EnergyOffer.seller_id == seller_id)
            .order_by(EnergyOffer.created_at.desc(), EnergyOffer.id.desc())
        )
        async with self._sessionmaker() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def create_energy_offer(self, data: EnergyOfferCreate) -> EnergyOffer:
        async with self._sessionmaker() as session:
            if not await session.get(User, data.seller_id):
                raise NotFound("User", data.seller_id)

            offer = EnergyOffer(**data.model_dump(exclude={"is_active"}), is_active=True)
            session.add(offer)
            await session.commit()
            await session.refresh(offer)

        logger.info("Created offer id=%s seller=%s kwh=%s", offer.id, offer.seller_id, offer.energy_amount)
        return offer

    async def update_offer_status(self, offer_id: str, is_active: bool) -> EnergyOffer:
        async with self._sessionmaker() as session:
            offer = await session.get(EnergyOffer, offer_id)
            if not offer:
                raise NotFound("Offer", offer_id)

            offer.is_active = is_active
            await session.commit()
            await session.refresh(offer)

        logger.info("Offer id=%s is_active=%s", offer_id, is_active)
        return offer

    # Transactions

    async def get_transactions(
        self,
        user_id: Optional[str] = None,
        limit: int = DEFAULT_LIMIT
    ) -> List[EnergyTransaction]:
        statement = select(EnergyTransaction)
        if user_id:
            statement = statement.where(
                or_(
                    EnergyTransaction.buyer_id == user_id,
                    EnergyTransaction.seller_id == user_id
                )
            )
        statement = statement.order_by(
            EnergyTransaction.created_at.desc(),
            EnergyTransaction.id.desc()
        ).limit(limit)

        async with self._sessionmaker() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def get_transaction(self, transaction_id: str) -> Optional[EnergyTransaction]:
        async with self._sessionmaker() as session:
            return await session.get(EnergyTransaction, transaction_id)

    async def create_transaction(self, data: EnergyTransactionCreate) -> EnergyTransaction:
        transaction = EnergyTransaction(
            **data.model_dump(exclude={"status"}),
            status=TransactionStatus.PENDING
        )
        async with self._sessionmaker() as session:
            session.add(transaction)
            await session.commit()
            await session.refresh(transaction)

        logger.info("Created transaction id=%s offer=%s", transaction.id, transaction.offer_id)
        return transaction

    async def update_transaction_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        transaction_hash: Optional[str] = None,
        block_number: Optional[int] = None
    ) -> EnergyTransaction:
        async with self._sessionmaker() as session:
            transaction = await session.get(EnergyTransaction, transaction_id)
            if not transaction:
                raise NotFound("Transaction", transaction_id)

            transaction.status = status
            if transaction_hash is not None:
                transaction.transaction_hash = transaction_hash
            if block_number is not None:
                transaction.block_number = block_number
            await session.commit()
            await session.refresh(transaction)

        logger.info("Transaction id=%s status=%s", transaction_id, status.value)
        return transaction

    async def purchase_offer(
        self,
        offer_id: str,
        buyer_id: str,
        energy_amount: Optional[Decimal] = None
    ) -> EnergyTransaction:
        async with self._sessionmaker() as session:
            result = await session.execute(
                select(EnergyOffer).where(EnergyOffer.id == offer_id).with_for_update()
            )
            offer = result.scalars().first()
            if not offer:
                raise NotFound("Offer", offer_id)
            if not await session.get(User, buyer_id):
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
            session.add(transaction)
            # Offer update and transaction insert commit together
            await session.commit()
            await session.refresh(transaction)

        logger.info(
            "Purchase offer=%s buyer=%s kwh=%s total=%s",
            offer_id, buyer_id, amount, total_price,
        )
        return transaction

    # Generation

    async def get_energy_generation(self, user_id: str) -> Optional[EnergyGeneration]:
        async with self._sessionmaker() as session:
            result = await session.execute(
                select(EnergyGeneration).where(EnergyGeneration.user_id == user_id)
            )
            return result.scalars().first()

    async def update_energy_generation(
        self,
        user_id: str,
        data: EnergyGenerationCreate
    ) -> EnergyGeneration:
        values = data.model_dump(exclude={"user_id"})

        async with self._sessionmaker() as session:
            if not await session.get(User, user_id):
                raise NotFound("User", user_id)

            result = await session.execute(
                select(EnergyGeneration).where(EnergyGeneration.user_id == user_id)
            )
            generation = result.scalars().first()
            if generation:
                for key, value in values.items():
                    setattr(generation, key, value)
                generation.last_updated = utc_now()
            else:
                generation = EnergyGeneration(**values, user_id=user_id)
                session.add(generation)

            await session.commit()
            await session.refresh(generation)

        logger.info("Upserted generation for user=%s", user_id)
        return generation
