"""
Optional development seeding script.
"""

import asyncio
import logging
from decimal import Decimal

from energy_market.core.config import get_settings
from energy_market.main import configure_logging
from energy_market.models.generation import EnergyGenerationCreate
from energy_market.models.offer import EnergyOfferCreate, EnergyType
from energy_market.models.user import UserCreate, UserType
from energy_market.storage import Storage, build_storage
from energy_market.utils.hashing import hash_password

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

# (username, energy type, kWh for sale, price per kWh)
DEMO_PROSUMERS = [
    ("solar_sam", EnergyType.SOLAR, Decimal("12.5"), Decimal("0.045")),
    ("windy_wendy", EnergyType.WIND, Decimal("30"), Decimal("0.038")),
    ("river_rita", EnergyType.HYDRO, Decimal("8"), Decimal("0.052")),
]
DEMO_CONSUMERS = ["carl_consumer", "dana_consumer"]


async def seed_data(storage: Storage, iterations: int) -> None:
    """Seed storage with demo users, offers and generation snapshots."""
    password = hash_password(DEMO_PASSWORD, iterations)

    for username, energy_type, kwh, price in DEMO_PROSUMERS:
        if await storage.get_user_by_username(username):
            logger.info("Skipping existing user %s", username)
            continue
        user = await storage.create_user(
            UserCreate(username=username, password=password, user_type=UserType.PROSUMER)
        )
        await storage.create_energy_offer(
            EnergyOfferCreate(
                seller_id=user.id,
                energy_amount=kwh,
                price_per_kwh=price,
                energy_type=energy_type,
                location="Demo Grid"
            )
        )
        await storage.update_energy_generation(
            user.id,
            EnergyGenerationCreate(
                user_id=user.id,
                current_output=Decimal("3.20"),
                daily_generation=kwh * 2,
                available_to_sell=kwh,
                energy_type=energy_type
            )
        )
        logger.info("Created prosumer %s", username)

    for username in DEMO_CONSUMERS:
        if await storage.get_user_by_username(username):
            continue
        await storage.create_user(
            UserCreate(username=username, password=password, user_type=UserType.CONSUMER)
        )
        logger.info("Created consumer %s", username)


async def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    storage = build_storage(settings)
    await storage.startup()
    try:
        await seed_data(storage, settings.password_hash_iterations)
    finally:
        await storage.shutdown()
    logger.info("Seed data created successfully!")


if __name__ == "__main__":
    asyncio.run(main())
