# SQLModel database models

from energy_market.models.user import User
from energy_market.models.offer import EnergyOffer
from energy_market.models.transaction import EnergyTransaction
from energy_market.models.generation import EnergyGeneration

__all__ = [
    "User",
    "EnergyOffer",
    "EnergyTransaction",
    "EnergyGeneration",
]
