"""
Storage contract tests, run against both the in-memory and SQL backends.
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from energy_market.core.database import create_engine
from energy_market.core.exceptions import (
    DuplicateUsername,
    DuplicateWalletAddress,
    NotFound,
    OfferUnavailable,
)
from energy_market.models.generation import EnergyGenerationCreate
from energy_market.models.offer import EnergyOfferCreate, EnergyType
from energy_market.models.transaction import EnergyTransactionCreate, TransactionStatus
from energy_market.models.user import UserCreate, UserType
from energy_market.storage import SQLStorage


async def add_user(storage, username, user_type=UserType.CONSUMER, wallet_address=None):
    return await storage.create_user(
        UserCreate(
            username=username,
            password="hashed-secret",
            user_type=user_type,
            wallet_address=wallet_address,
        )
    )


async def add_offer(storage, seller_id, kwh="10", price="0.05", is_active=None):
    return await storage.create_energy_offer(
        EnergyOfferCreate(
            seller_id=seller_id,
            energy_amount=Decimal(kwh),
            price_per_kwh=Decimal(price),
            energy_type=EnergyType.SOLAR,
            is_active=is_active,
        )
    )


async def add_transaction(storage, offer, buyer_id, kwh="1", total="0.05", status=None):
    return await storage.create_transaction(
        EnergyTransactionCreate(
            offer_id=offer.id,
            buyer_id=buyer_id,
            seller_id=offer.seller_id,
            energy_amount=Decimal(kwh),
            total_price=Decimal(total),
            status=status,
        )
    )


def assert_newest_first(records):
    keys = [(record.created_at, record.id) for record in records]
    assert keys == sorted(keys, reverse=True)


class TestUsers:

    async def test_create_user_assigns_id_and_timestamp(self, storage):
        user = await add_user(storage, "alice")

        assert user.id
        assert user.created_at is not None
        assert user.password == "hashed-secret"
        assert user.user_type == UserType.CONSUMER
        assert (await storage.get_user(user.id)).username == "alice"

    async def test_duplicate_username_is_rejected(self, storage):
        original = await add_user(storage, "alice")

        with pytest.raises(DuplicateUsername):
            await add_user(storage, "alice", UserType.PROSUMER)

        found = await storage.get_user_by_username("alice")
        assert found.id == original.id
        assert found.user_type == UserType.CONSUMER

    async def test_username_lookup_is_exact(self, storage):
        await add_user(storage, "alice")

        assert await storage.get_user_by_username("ali") is None
        assert await storage.get_user_by_username("ALICE") is None
        assert await storage.get_user("missing") is None

    async def test_duplicate_wallet_on_create_is_rejected(self, storage):
        await add_user(storage, "alice", wallet_address="0xabc")

        with pytest.raises(DuplicateWalletAddress):
            await add_user(storage, "bob", wallet_address="0xabc")
        assert await storage.get_user_by_username("bob") is None

    async def test_update_wallet_replaces_address(self, storage):
        user = await add_user(storage, "alice", wallet_address="0xold")

        updated = await storage.update_user_wallet(user.id, "0xnew")

        assert updated.wallet_address == "0xnew"
        assert (await storage.get_user_by_wallet_address("0xnew")).id == user.id
        assert await storage.get_user_by_wallet_address("0xold") is None

    async def test_update_wallet_unknown_user(self, storage):
        with pytest.raises(NotFound):
            await storage.update_user_wallet("missing", "0xabc")

    async def test_update_wallet_held_by_other_user(self, storage):
        await add_user(storage, "alice", wallet_address="0xabc")
        bob = await add_user(storage, "bob")

        with pytest.raises(DuplicateWalletAddress):
            await storage.update_user_wallet(bob.id, "0xabc")
        assert (await storage.get_user(bob.id)).wallet_address is None

    async def test_reconnecting_same_wallet_is_allowed(self, storage):
        user = await add_user(storage, "alice", wallet_address="0xabc")

        updated = await storage.update_user_wallet(user.id, "0xabc")

        assert updated.wallet_address == "0xabc"


class TestOffers:

    async def test_created_offer_is_always_active(self, storage):
        seller = await add_user(storage, "bob", UserType.PROSUMER)

        offer = await add_offer(storage, seller.id, is_active=False)

        assert offer.is_active is True
        assert offer.id
        assert offer.created_at is not None
        assert offer.energy_amount == Decimal("10")
        assert offer.price_per_kwh == Decimal("0.05")

    async def test_offer_requires_existing_seller(self, storage):
        with pytest.raises(NotFound):
            await add_offer(storage, "missing")
        assert await storage.get_energy_offers() == []

    async def test_listing_excludes_inactive_offers(self, storage):
        seller = await add_user(storage, "bob", UserType.PROSUMER)
        kept = await add_offer(storage, seller.id)
        withdrawn = await add_offer(storage, seller.id, kwh="5")

        await storage.update_offer_status(withdrawn.id, False)
        offers = await storage.get_energy_offers()

        assert [offer.id for offer in offers] == [kept.id]
        assert all(offer.is_active for offer in offers)

    async def test_listing_is_newest_first_and_limited(self, storage):
        seller = await add_user(storage, "bob", UserType.PROSUMER)
        created = [await add_offer(storage, seller.id, kwh=str(n)) for n in range(1, 6)]

        offers = await storage.get_energy_offers()
        limited = await storage.get_energy_offers(limit=2)

        assert {offer.id for offer in offers} == {offer.id for offer in created}
        assert_newest_first(offers)
        assert len(limited) == 2
        assert_newest_first(limited)

    async def test_equal_timestamps_order_by_id(self, storage, frozen_clock):
        seller = await add_user(storage, "bob", UserType.PROSUMER)
        created = [await add_offer(storage, seller.id, kwh=str(n)) for n in range(1, 6)]
        expected = sorted((offer.id for offer in created), reverse=True)

        assert len({offer.created_at for offer in created}) == 1
        assert [o.id for o in await storage.get_energy_offers()] == expected
        assert [o.id for o in await storage.get_energy_offers(limit=2)] == expected[:2]
        assert [o.id for o in await storage.get_offers_by_seller(seller.id)] == expected

    async def test_status_update_changes_only_the_flag(self, storage):
        seller = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, seller.id)

        updated = await storage.update_offer_status(offer.id, False)
        fetched = await storage.get_energy_offer(offer.id)

        assert updated.is_active is False
        assert fetched.is_active is False
        assert fetched.energy_amount == offer.energy_amount
        assert fetched.price_per_kwh == offer.price_per_kwh
        assert fetched.seller_id == offer.seller_id

        reactivated = await storage.update_offer_status(offer.id, True)
        assert reactivated.is_active is True
        assert [o.id for o in await storage.get_energy_offers()] == [offer.id]

    async def test_status_update_unknown_offer(self, storage):
        with pytest.raises(NotFound):
            await storage.update_offer_status("missing", False)

    async def test_offers_by_seller_include_inactive(self, storage):
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        carol = await add_user(storage, "carol", UserType.PROSUMER)
        first = await add_offer(storage, bob.id)
        second = await add_offer(storage, bob.id)
        await add_offer(storage, carol.id)
        await storage.update_offer_status(first.id, False)

        offers = await storage.get_offers_by_seller(bob.id)

        assert {offer.id for offer in offers} == {first.id, second.id}
        assert_newest_first(offers)

    async def test_returned_records_are_detached(self, storage):
        seller = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, seller.id)

        offer.is_active = False
        offer.energy_amount = Decimal("999")

        stored = await storage.get_energy_offer(offer.id)
        assert stored.is_active is True
        assert stored.energy_amount == Decimal("10")


class TestTransactions:

    async def test_created_transaction_is_pending(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id)

        transaction = await add_transaction(
            storage, offer, alice.id, status=TransactionStatus.CONFIRMED
        )

        assert transaction.status == TransactionStatus.PENDING
        assert transaction.id
        assert transaction.created_at is not None

    async def test_create_does_not_touch_offer(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id)

        await add_transaction(storage, offer, alice.id, kwh="10", total="0.5")

        stored = await storage.get_energy_offer(offer.id)
        assert stored.is_active is True
        assert stored.energy_amount == Decimal("10")

    async def test_user_filter_matches_buyer_or_seller(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        carol = await add_user(storage, "carol", UserType.PROSUMER)
        dave = await add_user(storage, "dave")
        bob_offer = await add_offer(storage, bob.id)
        carol_offer = await add_offer(storage, carol.id)
        alice_offer = await add_offer(storage, alice.id)

        bought = await add_transaction(storage, bob_offer, alice.id)
        sold = await add_transaction(storage, alice_offer, dave.id)
        unrelated = await add_transaction(storage, carol_offer, dave.id)

        for_alice = await storage.get_transactions(alice.id)
        everything = await storage.get_transactions()

        assert {tx.id for tx in for_alice} == {bought.id, sold.id}
        assert all(alice.id in (tx.buyer_id, tx.seller_id) for tx in for_alice)
        assert_newest_first(for_alice)
        assert {tx.id for tx in everything} == {bought.id, sold.id, unrelated.id}
        assert_newest_first(everything)

    async def test_equal_timestamps_order_by_id(self, storage, frozen_clock):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id)
        created = [await add_transaction(storage, offer, alice.id) for _ in range(4)]
        expected = sorted((tx.id for tx in created), reverse=True)

        assert [tx.id for tx in await storage.get_transactions(alice.id)] == expected
        assert [tx.id for tx in await storage.get_transactions(limit=3)] == expected[:3]

    async def test_listing_limit(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id)
        for _ in range(4):
            await add_transaction(storage, offer, alice.id)

        assert len(await storage.get_transactions(alice.id, limit=3)) == 3
        assert len(await storage.get_transactions(limit=1)) == 1

    async def test_status_update_keeps_absent_hash_and_block(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id)
        transaction = await add_transaction(storage, offer, alice.id)

        confirmed = await storage.update_transaction_status(
            transaction.id, TransactionStatus.CONFIRMED, "0xhash", 42
        )
        assert confirmed.status == TransactionStatus.CONFIRMED
        assert confirmed.transaction_hash == "0xhash"
        assert confirmed.block_number == 42

        failed = await storage.update_transaction_status(transaction.id, TransactionStatus.FAILED)
        assert failed.status == TransactionStatus.FAILED
        assert failed.transaction_hash == "0xhash"
        assert failed.block_number == 42

        stored = await storage.get_transaction(transaction.id)
        assert stored.status == TransactionStatus.FAILED
        assert stored.transaction_hash == "0xhash"

    async def test_status_update_unknown_transaction(self, storage):
        with pytest.raises(NotFound):
            await storage.update_transaction_status("missing", TransactionStatus.CONFIRMED)


class TestPurchase:

    async def test_full_purchase_deactivates_offer(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id, kwh="10", price="0.05")

        transaction = await storage.purchase_offer(offer.id, alice.id)

        assert transaction.status == TransactionStatus.PENDING
        assert transaction.buyer_id == alice.id
        assert transaction.seller_id == bob.id
        assert transaction.energy_amount == Decimal("10")
        assert transaction.total_price == Decimal("0.5")

        stored = await storage.get_energy_offer(offer.id)
        assert stored.is_active is False
        assert stored.energy_amount == Decimal("0")
        assert await storage.get_energy_offers() == []

    async def test_partial_purchase_keeps_offer_open(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id, kwh="10", price="0.05")

        transaction = await storage.purchase_offer(offer.id, alice.id, Decimal("4"))

        assert transaction.total_price == Decimal("0.2")
        stored = await storage.get_energy_offer(offer.id)
        assert stored.is_active is True
        assert stored.energy_amount == Decimal("6")
        assert [tx.id for tx in await storage.get_transactions(alice.id)] == [transaction.id]

    async def test_cannot_buy_more_than_remaining(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id, kwh="10")

        with pytest.raises(OfferUnavailable):
            await storage.purchase_offer(offer.id, alice.id, Decimal("11"))
        assert await storage.get_transactions() == []
        assert (await storage.get_energy_offer(offer.id)).energy_amount == Decimal("10")

    async def test_cannot_buy_inactive_offer(self, storage):
        alice = await add_user(storage, "alice")
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id)
        await storage.update_offer_status(offer.id, False)

        with pytest.raises(OfferUnavailable):
            await storage.purchase_offer(offer.id, alice.id)

    async def test_seller_cannot_buy_own_offer(self, storage):
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id)

        with pytest.raises(OfferUnavailable):
            await storage.purchase_offer(offer.id, bob.id)

    async def test_unknown_offer_or_buyer(self, storage):
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        offer = await add_offer(storage, bob.id)

        with pytest.raises(NotFound) as offer_error:
            await storage.purchase_offer("missing", bob.id)
        with pytest.raises(NotFound) as buyer_error:
            await storage.purchase_offer(offer.id, "missing")

        assert offer_error.value.entity == "Offer"
        assert buyer_error.value.entity == "User"


class TestGeneration:

    def snapshot(self, user_id, output="2.5", daily="12", available="6"):
        return EnergyGenerationCreate(
            user_id=user_id,
            current_output=Decimal(output),
            daily_generation=Decimal(daily),
            available_to_sell=Decimal(available),
            energy_type=EnergyType.WIND,
        )

    async def test_missing_generation_is_none(self, storage):
        user = await add_user(storage, "bob", UserType.PROSUMER)

        assert await storage.get_energy_generation(user.id) is None

    async def test_upsert_keeps_one_row_per_user(self, storage):
        user = await add_user(storage, "bob", UserType.PROSUMER)

        first = await storage.update_energy_generation(user.id, self.snapshot(user.id))
        second = await storage.update_energy_generation(
            user.id, self.snapshot(user.id, output="4", daily="20", available="9")
        )

        assert second.id == first.id
        assert second.current_output == Decimal("4")
        assert second.available_to_sell == Decimal("9")
        assert second.last_updated >= first.last_updated

        stored = await storage.get_energy_generation(user.id)
        assert stored.id == first.id
        assert stored.daily_generation == Decimal("20")

    async def test_rows_are_per_user(self, storage):
        bob = await add_user(storage, "bob", UserType.PROSUMER)
        carol = await add_user(storage, "carol", UserType.PROSUMER)

        bob_row = await storage.update_energy_generation(bob.id, self.snapshot(bob.id))
        carol_row = await storage.update_energy_generation(carol.id, self.snapshot(carol.id, output="1"))

        assert bob_row.id != carol_row.id
        assert (await storage.get_energy_generation(bob.id)).current_output == Decimal("2.5")
        assert (await storage.get_energy_generation(carol.id)).current_output == Decimal("1")

    async def test_upsert_unknown_user(self, storage):
        with pytest.raises(NotFound):
            await storage.update_energy_generation("missing", self.snapshot("missing"))


async def test_sql_integrity_error_without_wallet_is_not_misreported(monkeypatch):
    storage = SQLStorage(create_engine("sqlite+aiosqlite:///:memory:"))
    await storage.startup()
    try:
        await add_user(storage, "alice")

        async def no_match(username):
            return None

        # Skip the pre-check and the fallback lookup so only the constraint fires
        monkeypatch.setattr(storage, "get_user_by_username", no_match)

        with pytest.raises(IntegrityError):
            await add_user(storage, "alice")
    finally:
        await storage.shutdown()
