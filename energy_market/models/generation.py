"""
Energy generation model - latest production snapshot per user.
"""

from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from energy_market.models.common import ApiModel, DecimalString, new_id
from energy_market.models.offer import EnergyType
from energy_market.utils.time import utc_now


class EnergyGenerationBase(SQLModel):
    """Base energy generation schema."""
    user_id: str = Field(..., foreign_key="users.id", index=True)
    current_output: Decimal = Field(..., ge=0, max_digits=8, decimal_places=2, description="Current output in kW")
    daily_generation: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Generated today in kWh")
    available_to_sell: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    energy_type: EnergyType


class EnergyGeneration(EnergyGenerationBase, table=True):
    """Energy generation database table (one row per user, kept by upsert)."""
    __tablename__ = "energy_generation"

    id: str = Field(default_factory=new_id, primary_key=True)
    last_updated: datetime = Field(default_factory=utc_now)


class EnergyGenerationCreate(ApiModel, EnergyGenerationBase):
    """Schema for upserting a generation snapshot."""
    pass


class EnergyGenerationRead(ApiModel):
    """Schema for reading a generation snapshot."""
    id: str
    user_id: str
    current_output: DecimalString
    daily_generation: DecimalString
    available_to_sell: DecimalString
    energy_type: EnergyType
    last_updated: Optional[datetime] = None


class GenerationResponse(ApiModel):
    generation: Optional[EnergyGenerationRead] = None
