"""
Registration and login endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from energy_market.core.config import Settings
from energy_market.core.exceptions import Conflict, Unauthorized
from energy_market.models.user import AuthResponse, LoginRequest, User, UserCreate, UserRead
from energy_market.routes.deps import get_app_settings, get_storage
from energy_market.storage.base import Storage
from energy_market.utils.hashing import hash_password, issue_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def authenticate(storage: Storage, username: str, password: str) -> User:
    """Return the user whose stored hash matches the password."""
    user = await storage.get_user_by_username(username)
    # PBKDF2 is CPU bound; keep it off the event loop
    if not user or not await run_in_threadpool(verify_password, password, user.password):
        logger.warning("Failed login for username=%s", username)
        raise Unauthorized("Invalid credentials")
    return user


@router.post("/register", response_model=AuthResponse)
async def register_endpoint(
    payload: UserCreate,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """Register a prosumer or consumer; the password is stored hashed."""
    hashed = await run_in_threadpool(
        hash_password, payload.password, settings.password_hash_iterations
    )
    try:
        user = await storage.create_user(payload.model_copy(update={"password": hashed}))
    except Conflict as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return AuthResponse(
        user=UserRead.model_validate(user),
        token=issue_token(user.id, settings.secret_key)
    )


@router.post("/login", response_model=AuthResponse)
async def login_endpoint(
    payload: LoginRequest,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """Check credentials and issue a bearer token."""
    try:
        user = await authenticate(storage, payload.username, payload.password)
    except Unauthorized as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )
    return AuthResponse(
        user=UserRead.model_validate(user),
        token=issue_token(user.id, settings.secret_key)
    )
