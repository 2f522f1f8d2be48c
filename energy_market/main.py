"""
FastAPI application factory with async lifespan.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from energy_market.core.config import Settings, get_settings
from energy_market.routes import register_routes
from energy_market.storage import Storage, build_storage

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Schema mismatches are client errors: 400 with the validation details."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())}
    )


def create_app(
    storage: Optional[Storage] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the marketplace API.
    
    Args:
        storage: Storage backend to serve from; built from settings when omitted
        settings: Application settings; environment settings when omitted
    """
    settings = settings or get_settings()
    storage = storage or build_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Async lifespan manager for startup and shutdown."""
        # Startup
        await storage.startup()
        logger.info("Started %s with %s storage", settings.app_name, type(storage).__name__)
        yield
        # Shutdown
        await storage.shutdown()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Peer-to-peer renewable energy marketplace",
        lifespan=lifespan
    )
    app.state.settings = settings

    # CORS middleware (for the browser front end)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify exact origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    register_routes(app, storage)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health"
        }

    return app
