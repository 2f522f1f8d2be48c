"""
Wallet endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from energy_market.core.constants import USER_ID_HEADER
from energy_market.core.exceptions import Conflict, NotFound
from energy_market.models.user import UserRead, UserResponse, WalletConnectRequest
from energy_market.routes.deps import get_storage
from energy_market.storage.base import Storage

router = APIRouter(prefix="/api/wallet", tags=["wallet"])


@router.post("/connect", response_model=UserResponse)
async def connect_wallet_endpoint(
    payload: WalletConnectRequest,
    user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
    storage: Storage = Depends(get_storage)
):
    """Attach a wallet address to the user named in the user-id header."""
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User ID required"
        )
    try:
        user = await storage.update_user_wallet(user_id, payload.wallet_address)
    except NotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except Conflict as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return UserResponse(user=UserRead.model_validate(user))
