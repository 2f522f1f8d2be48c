"""
User lookup endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from energy_market.models.offer import EnergyOfferRead, OfferListResponse
from energy_market.models.user import UserRead, UserResponse
from energy_market.routes.deps import get_storage
from energy_market.storage.base import Storage

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/wallet/{wallet_address}", response_model=UserResponse)
async def get_user_by_wallet_endpoint(
    wallet_address: str,
    storage: Storage = Depends(get_storage)
):
    """Find the user a wallet address is attached to."""
    user = await storage.get_user_by_wallet_address(wallet_address)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No user with wallet {wallet_address}"
        )
    return UserResponse(user=UserRead.model_validate(user))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_endpoint(
    user_id: str,
    storage: Storage = Depends(get_storage)
):
    """Get user by ID."""
    user = await storage.get_user(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} not found"
        )
    return UserResponse(user=UserRead.model_validate(user))


@router.get("/{user_id}/offers", response_model=OfferListResponse)
async def get_user_offers_endpoint(
    user_id: str,
    storage: Storage = Depends(get_storage)
):
    """All offers a user has listed, including withdrawn ones."""
    offers = await storage.get_offers_by_seller(user_id)
    return OfferListResponse(offers=[EnergyOfferRead.model_validate(o) for o in offers])
