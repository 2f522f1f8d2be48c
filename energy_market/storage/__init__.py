# Storage backends behind a single interface

from energy_market.core.config import Settings
from energy_market.core.database import create_engine
from energy_market.storage.base import Storage
from energy_market.storage.memory import MemoryStorage
from energy_market.storage.sql import SQLStorage


def build_storage(settings: Settings) -> Storage:
    """Construct the backend named by settings.storage_backend."""
    if settings.storage_backend == "sql":
        return SQLStorage(create_engine(settings.database_url, echo=settings.debug))
    return MemoryStorage()


__all__ = [
    "Storage",
    "MemoryStorage",
    "SQLStorage",
    "build_storage",
]
