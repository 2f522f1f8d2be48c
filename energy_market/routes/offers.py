"""
Energy offer endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from energy_market.core.config import Settings
from energy_market.core.constants import MAX_LIMIT
from energy_market.core.exceptions import NotFound, OfferUnavailable
from energy_market.models.offer import (
    EnergyOfferCreate,
    EnergyOfferRead,
    OfferListResponse,
    OfferResponse,
    OfferStatusUpdate,
)
from energy_market.models.transaction import (
    EnergyTransactionRead,
    PurchaseRequest,
    PurchaseResponse,
)
from energy_market.routes.deps import get_app_settings, get_storage
from energy_market.storage.base import Storage

router = APIRouter(prefix="/api/energy/offers", tags=["offers"])


@router.get("", response_model=OfferListResponse)
async def list_offers_endpoint(
    limit: Optional[int] = Query(default=None, ge=1, le=MAX_LIMIT),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """List active offers, newest first."""
    offers = await storage.get_energy_offers(limit or settings.default_page_limit)
    return OfferListResponse(offers=[EnergyOfferRead.model_validate(o) for o in offers])


@router.get("/{offer_id}", response_model=OfferResponse)
async def get_offer_endpoint(
    offer_id: str,
    storage: Storage = Depends(get_storage)
):
    """Get an offer by ID, active or not."""
    offer = await storage.get_energy_offer(offer_id)
    if not offer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Offer not found"
        )
    return OfferResponse(offer=EnergyOfferRead.model_validate(offer))


@router.post("", response_model=OfferResponse)
async def create_offer_endpoint(
    payload: EnergyOfferCreate,
    storage: Storage = Depends(get_storage)
):
    """Create a new offer. New offers are always active."""
    try:
        offer = await storage.create_energy_offer(payload)
    except NotFound as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return OfferResponse(offer=EnergyOfferRead.model_validate(offer))


@router.patch("/{offer_id}/status", response_model=OfferResponse)
async def update_offer_status_endpoint(
    offer_id: str,
    payload: OfferStatusUpdate,
    storage: Storage = Depends(get_storage)
):
    """Activate or withdraw an offer."""
    try:
        offer = await storage.update_offer_status(offer_id, payload.is_active)
    except NotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return OfferResponse(offer=EnergyOfferRead.model_validate(offer))


@router.post("/{offer_id}/purchase", response_model=PurchaseResponse)
async def purchase_offer_endpoint(
    offer_id: str,
    payload: PurchaseRequest,
    storage: Storage = Depends(get_storage)
):
    """
    Buy energy from an offer.
    
    Records a pending transaction and reduces the offer's remaining energy
    in one step; the offer is withdrawn once it is sold out.
    """
    try:
        transaction = await storage.purchase_offer(offer_id, payload.buyer_id, payload.energy_amount)
    except NotFound as e:
        if e.entity == "Offer":
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=str(e)
            )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except OfferUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

    offer = await storage.get_energy_offer(offer_id)
    return PurchaseResponse(
        transaction=EnergyTransactionRead.model_validate(transaction),
        offer=EnergyOfferRead.model_validate(offer)
    )
