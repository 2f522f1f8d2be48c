# HTTP route registration

from fastapi import FastAPI

from energy_market.routes import auth, generation, health, offers, transactions, users, wallet
from energy_market.storage.base import Storage


def register_routes(app: FastAPI, storage: Storage) -> None:
    """Attach the storage instance and mount every router on the app."""
    app.state.storage = storage

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(wallet.router)
    app.include_router(offers.router)
    app.include_router(transactions.router)
    app.include_router(generation.router)
    app.include_router(users.router)
