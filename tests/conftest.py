from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from energy_market.core.config import Settings
from energy_market.core.database import create_engine
from energy_market.main import create_app
from energy_market.storage import MemoryStorage, SQLStorage
from energy_market.utils import time as time_utils

BACKENDS = ["memory", "sql"]


def make_storage(backend):
    if backend == "sql":
        return SQLStorage(create_engine("sqlite+aiosqlite:///:memory:"))
    return MemoryStorage()


@pytest.fixture
def settings():
    return Settings(
        secret_key="test-secret",
        password_hash_iterations=1000,
        storage_backend="memory",
    )


@pytest.fixture(params=BACKENDS)
async def storage(request):
    """Fresh, isolated storage per test; every contract test runs on both backends."""
    backend = make_storage(request.param)
    await backend.startup()
    yield backend
    await backend.shutdown()


@pytest.fixture(params=BACKENDS)
def client(request, settings):
    app = create_app(storage=make_storage(request.param), settings=settings)
    with TestClient(app) as test_client:
        yield test_client


class FrozenDatetime(datetime):

    @classmethod
    def now(cls, tz=None):
        return datetime(2026, 1, 1, 12, 0, tzinfo=tz)


@pytest.fixture
def frozen_clock(monkeypatch):
    """Every record created while active gets the same timestamp."""
    monkeypatch.setattr(time_utils, "datetime", FrozenDatetime)
