"""
Energy transaction endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from energy_market.core.config import Settings
from energy_market.core.constants import MAX_LIMIT
from energy_market.core.exceptions import NotFound
from energy_market.models.transaction import (
    EnergyTransactionCreate,
    EnergyTransactionRead,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatusUpdate,
)
from energy_market.routes.deps import get_app_settings, get_storage
from energy_market.storage.base import Storage

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
async def list_transactions_endpoint(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    limit: Optional[int] = Query(default=None, ge=1, le=MAX_LIMIT),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_app_settings)
):
    """List transactions, optionally only those where the user bought or sold."""
    transactions = await storage.get_transactions(user_id, limit or settings.default_page_limit)
    return TransactionListResponse(
        transactions=[EnergyTransactionRead.model_validate(tx) for tx in transactions]
    )


@router.post("", response_model=TransactionResponse)
async def create_transaction_endpoint(
    payload: EnergyTransactionCreate,
    storage: Storage = Depends(get_storage)
):
    """
    Record a transaction as pending.
    
    The referenced offer is not checked or changed; use
    POST /api/energy/offers/{id}/purchase to buy against an offer.
    """
    transaction = await storage.create_transaction(payload)
    return TransactionResponse(transaction=EnergyTransactionRead.model_validate(transaction))


@router.patch("/{transaction_id}/status", response_model=TransactionResponse)
async def update_transaction_status_endpoint(
    transaction_id: str,
    payload: TransactionStatusUpdate,
    storage: Storage = Depends(get_storage)
):
    """Update status; hash and block number are kept when omitted."""
    try:
        transaction = await storage.update_transaction_status(
            transaction_id,
            payload.status,
            payload.transaction_hash,
            payload.block_number
        )
    except NotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return TransactionResponse(transaction=EnergyTransactionRead.model_validate(transaction))
