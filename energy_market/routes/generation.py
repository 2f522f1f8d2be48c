"""
Energy generation endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from energy_market.core.exceptions import NotFound
from energy_market.models.generation import (
    EnergyGenerationCreate,
    EnergyGenerationRead,
    GenerationResponse,
)
from energy_market.routes.deps import get_storage
from energy_market.storage.base import Storage

router = APIRouter(prefix="/api/energy/generation", tags=["generation"])


@router.get("/{user_id}", response_model=GenerationResponse)
async def get_generation_endpoint(
    user_id: str,
    storage: Storage = Depends(get_storage)
):
    """Latest generation snapshot for a user (null when none was reported)."""
    generation = await storage.get_energy_generation(user_id)
    if not generation:
        return GenerationResponse(generation=None)
    return GenerationResponse(generation=EnergyGenerationRead.model_validate(generation))


@router.post("", response_model=GenerationResponse)
async def upsert_generation_endpoint(
    payload: EnergyGenerationCreate,
    storage: Storage = Depends(get_storage)
):
    """Create or replace the user's generation snapshot."""
    try:
        generation = await storage.update_energy_generation(payload.user_id, payload)
    except NotFound as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return GenerationResponse(generation=EnergyGenerationRead.model_validate(generation))
